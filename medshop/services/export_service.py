"""Sales history export: one CSV row per (sale, line item)."""
import csv
import io
from typing import Iterable

from medshop.schemas.sale import SaleRecord

CSV_HEADERS = ["Sale ID", "Date", "Customer Name", "Item Name", "Quantity", "Price Per Unit", "Item Total"]
DATE_FORMAT = "%Y-%m-%d %H:%M"


def export_sales_csv(sales: Iterable[SaleRecord]) -> str:
    """Render sales as CSV text. Fields containing commas or quotes are quoted, quotes doubled."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for sale in sales:
        for item in sale.items:
            writer.writerow([
                sale.id,
                sale.sale_date.strftime(DATE_FORMAT),
                sale.customer_name,
                item.name,
                item.quantity,
                f"{item.price:.2f}",
                f"{item.line_total:.2f}",
            ])

    return output.getvalue()
