"""Printable HTML invoices for bookings."""

from html import escape

from ..core.config import settings
from ..models.booking import Booking

INVOICE_STYLE = """
body { font-family: Arial, Helvetica, sans-serif; color: #1f2937; margin: 40px; }
.header { display: flex; justify-content: space-between; border-bottom: 2px solid #0f766e; padding-bottom: 16px; }
.brand { font-size: 24px; font-weight: bold; color: #0f766e; }
.meta { text-align: right; font-size: 13px; }
h2 { font-size: 16px; margin-top: 28px; color: #0f766e; }
table { width: 100%; border-collapse: collapse; margin-top: 8px; font-size: 13px; }
th, td { border: 1px solid #e5e7eb; padding: 8px; text-align: left; }
th { background: #f3f4f6; }
.total { font-size: 18px; font-weight: bold; text-align: right; margin-top: 20px; }
.footer { margin-top: 40px; font-size: 11px; color: #6b7280; text-align: center; }
@media print { body { margin: 0; } }
"""


def _money(amount: float) -> str:
    return f"{settings.currency} {amount:,.2f}"


def render_invoice(booking: Booking, site_name: str = "Adventure Escapes") -> str:
    """Render a self-contained HTML invoice with inline CSS."""
    event_title = booking.event.title if booking.event else ""
    customer = booking.user.name if booking.user else ""
    email = booking.user.email if booking.user else ""
    status = str(getattr(booking.status, "value", booking.status))
    payment_status = str(getattr(booking.payment_status, "value", booking.payment_status))

    participant_rows = "".join(
        "<tr><td>{}</td><td>{}</td><td>{}</td><td>{}</td></tr>".format(
            index,
            escape(str(p.get("name", ""))),
            escape(str(p.get("age", ""))),
            escape(str(p.get("gender", ""))),
        )
        for index, p in enumerate(booking.participants or [], start=1)
    )

    trip_rows = [("Event", event_title), ("Travel date", booking.travel_date.strftime("%d %B %Y"))]
    if booking.selected_departure:
        trip_rows.append(("Departure", booking.selected_departure))
    if booking.selected_transport_mode:
        trip_rows.append(("Transport", booking.selected_transport_mode.replace("_", " ")))
    trip_rows.append(("Participants", str(booking.participant_count)))
    trip_html = "".join(
        f"<tr><th>{escape(label)}</th><td>{escape(value)}</td></tr>" for label, value in trip_rows
    )

    amount_rows = [("Subtotal", _money(booking.total_amount + booking.discount_amount))]
    if booking.discount_amount:
        amount_rows.append(("Discount", "- " + _money(booking.discount_amount)))
    amount_rows.append(("Total", _money(booking.final_amount)))
    amount_html = "".join(
        f"<tr><th>{escape(label)}</th><td>{escape(value)}</td></tr>" for label, value in amount_rows
    )

    paid_on = booking.paid_at.strftime("%d %B %Y") if booking.paid_at else "-"

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Invoice {escape(booking.reference)}</title>
<style>{INVOICE_STYLE}</style>
</head>
<body>
<div class="header">
  <div class="brand">{escape(site_name)}</div>
  <div class="meta">
    <div><strong>Invoice</strong> {escape(booking.reference)}</div>
    <div>Issued {booking.created_at.strftime("%d %B %Y")}</div>
    <div>Status {escape(status)} / Payment {escape(payment_status)}</div>
  </div>
</div>
<h2>Billed to</h2>
<p>{escape(customer)}<br>{escape(email)}</p>
<h2>Trip</h2>
<table>{trip_html}</table>
<h2>Participants</h2>
<table>
<tr><th>#</th><th>Name</th><th>Age</th><th>Gender</th></tr>
{participant_rows}
</table>
<h2>Payment</h2>
<table>{amount_html}
<tr><th>Paid on</th><td>{escape(paid_on)}</td></tr>
<tr><th>Transaction</th><td>{escape(booking.transaction_id or "-")}</td></tr>
</table>
<div class="total">Amount {"paid" if payment_status == "SUCCESS" else "due"}: {escape(_money(booking.final_amount))}</div>
<div class="footer">Thank you for travelling with {escape(site_name)}.</div>
</body>
</html>
"""
