"""Prescription scanning: output validation and failure handling."""
import pytest

import rx_ai.prescription_parser as prescription_parser
from rx_ai import scan_prescription
from rx_ai.prescription_parser import is_image_data_uri, parse_scan_output
from rx_ai.vision_client import GroqVisionClient

IMAGE_URI = "data:image/png;base64,iVBORw0KGgo="


class FakeVisionClient:
    def __init__(self, answer):
        self.answer = answer

    def read_prescription(self, prompt, photo_data_uri):
        assert "medicines" in prompt
        assert photo_data_uri == IMAGE_URI
        return self.answer


@pytest.mark.parametrize("raw, expected", [
    ('{"medicines": ["Dolo 650", "Augmentin 625"]}', ["Dolo 650", "Augmentin 625"]),
    ('```json\n{"medicines": ["Pan 40"]}\n```', ["Pan 40"]),
    ('{"medicines": ["  Dolo   650 ", "dolo 650", "", 42]}', ["Dolo 650"]),
    ('{"medicines": []}', []),
    ("{}", []),
    ("I could not read this prescription.", []),
    ('["Dolo 650"]', []),
    ('{"medicines": "Dolo 650"}', []),
    (None, []),
])
def test_parse_scan_output(raw, expected):
    assert parse_scan_output(raw) == expected


def test_data_uri_check():
    assert is_image_data_uri(IMAGE_URI)
    assert not is_image_data_uri("data:text/plain;base64,aGVsbG8=")
    assert not is_image_data_uri("https://example.com/rx.jpg")
    assert not is_image_data_uri("")


def test_scan_returns_names(monkeypatch):
    monkeypatch.setattr(prescription_parser, "get_vision_client",
                        lambda: FakeVisionClient('{"medicines": ["Crocin"]}'))
    assert scan_prescription(IMAGE_URI) == ["Crocin"]


def test_scan_without_answer_is_empty(monkeypatch):
    monkeypatch.setattr(prescription_parser, "get_vision_client", lambda: FakeVisionClient(None))
    assert scan_prescription(IMAGE_URI) == []


def test_client_without_key_is_disabled():
    client = GroqVisionClient(api_key="")
    assert not client.is_available()
    assert client.read_prescription("prompt", IMAGE_URI) is None
