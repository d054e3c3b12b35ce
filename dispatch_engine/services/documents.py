import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from dispatch_engine.schemas import Shipment, ShipmentDetail

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 42
LINE_HEIGHT = 16
BRAND_TEAL = colors.Color(0, 90 / 255, 106 / 255)
HEADER_TEAL = colors.Color(22 / 255, 78 / 255, 99 / 255)

DETAIL_HEADERS = ["Customer", "Service", "Format", "Tare", "Gross", "Net", "Dispatch No.", "DOE"]
DETAIL_X = [MARGIN, 120, 195, 255, 315, 375, 435, 510]


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


def _fmt_kg(value: Optional[float]) -> str:
    return f"{(value or 0):.2f} kg"


def _draw_logo(c: canvas.Canvas, y: float):
    c.setFillColor(BRAND_TEAL)
    c.rect(MARGIN, y, 100, 28, fill=1, stroke=0)
    c.setFillColor(colors.white)
    c.setFont("Helvetica", 12)
    c.drawCentredString(MARGIN + 50, y + 10, "asendia")
    c.setFillColor(colors.black)


class PdfDocumentGenerator:
    """
    Renders the completion paperwork for a shipment.

    Primary document is the Pre-Alert (shipment summary plus every detail
    line); secondary is the CMR consignment note. Both are written to
    output_dir and the path is returned.
    """

    def __init__(self, output_dir: Path, details_source=None):
        self.output_dir = Path(output_dir)
        self.details_source = details_source

    def _path(self, prefix: str, shipment: Shipment) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir / f"{prefix}-{shipment.id or 'shipment'}.pdf"

    def _details(self, shipment: Shipment) -> list[ShipmentDetail]:
        if self.details_source is None:
            return []
        return self.details_source.list_details(shipment.id)

    def generate_primary_document(self, shipment: Shipment) -> Path:
        path = self._path("pre-alert", shipment)
        details = self._details(shipment)
        c = canvas.Canvas(str(path), pagesize=A4)

        y = PAGE_HEIGHT - MARGIN - 28
        _draw_logo(c, y)
        y -= 40

        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(PAGE_WIDTH / 2, y, "Shipment Completion Report")
        y -= 36

        c.setFont("Helvetica-Bold", 13)
        c.drawString(MARGIN, y, "Main Shipment Details:")
        y -= 20

        pairs = [
            ("Date Departure:", _fmt_date(shipment.departure_date)),
            ("Arrival Date:", _fmt_date(shipment.arrival_date)),
            ("Carrier:", shipment.carrier or "N/A"),
            ("Subcarrier:", shipment.subcarrier or "N/A"),
            ("Driver Name:", shipment.driver_name or "N/A"),
            ("Truck Reg No:", shipment.truck_registration or "N/A"),
            ("Trailer Reg No:", shipment.trailer_registration or "N/A"),
            ("Seal No:", shipment.seal_number or "N/A"),
            ("Total Gross Weight:", _fmt_kg(shipment.total_gross_weight)),
            ("Total Net Weight:", _fmt_kg(shipment.total_net_weight)),
            ("Total Pallets:", str(shipment.total_pallets)),
            ("Total Bags:", str(shipment.total_bags)),
        ]
        c.setFont("Helvetica", 10)
        for label, value in pairs:
            c.drawString(MARGIN, y, label)
            c.drawString(MARGIN + 130, y, value)
            y -= LINE_HEIGHT
        y -= 10

        c.setFont("Helvetica-Bold", 13)
        c.drawString(MARGIN, y, "Shipment Details:")
        y -= 24
        y = self._draw_detail_header(c, y)

        c.setFont("Helvetica", 8)
        for d in details:
            if y < MARGIN + LINE_HEIGHT:
                c.showPage()
                y = PAGE_HEIGHT - MARGIN - 28
                _draw_logo(c, y)
                y -= 40
                y = self._draw_detail_header(c, y)
                c.setFont("Helvetica", 8)
            row = [
                d.customer, d.service, d.format or "N/A",
                _fmt_kg(d.tare_weight), _fmt_kg(d.gross_weight), _fmt_kg(d.net_weight),
                d.dispatch_number or "N/A", d.doe or "N/A",
            ]
            for x, value in zip(DETAIL_X, row):
                c.drawString(x, y, value)
            y -= LINE_HEIGHT

        c.save()
        logger.info(f"[Documents] Pre-Alert written: {path} ({len(details)} detail lines)")
        return path

    def _draw_detail_header(self, c: canvas.Canvas, y: float) -> float:
        c.setFillColor(HEADER_TEAL)
        c.rect(MARGIN - 4, y - 5, PAGE_WIDTH - 2 * MARGIN + 8, 18, fill=1, stroke=0)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 8)
        for x, h in zip(DETAIL_X, DETAIL_HEADERS):
            c.drawString(x, y, h)
        c.setFillColor(colors.black)
        return y - 20

    def generate_secondary_document(self, shipment: Shipment) -> Path:
        path = self._path("cmr", shipment)
        c = canvas.Canvas(str(path), pagesize=A4)

        y = PAGE_HEIGHT - MARGIN - 28
        _draw_logo(c, y)
        y -= 40

        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(PAGE_WIDTH / 2, y, "CMR - International Consignment Note")
        y -= 30
        c.line(MARGIN, y, PAGE_WIDTH - MARGIN, y)
        y -= 24

        boxes = [
            ("1. Sender", shipment.sender_address or "N/A"),
            ("2. Consignee", shipment.consignee_address or "N/A"),
            ("16. Carrier", " / ".join(filter(None, [shipment.carrier, shipment.subcarrier])) or "N/A"),
            ("Driver", shipment.driver_name or "N/A"),
            ("Vehicle", f"Truck {shipment.truck_registration or 'N/A'}  Trailer {shipment.trailer_registration or 'N/A'}"),
            ("Seal No.", shipment.seal_number or "N/A"),
            ("4. Date of taking over", _fmt_date(shipment.departure_date)),
            ("11. Gross weight", _fmt_kg(shipment.total_gross_weight)),
            ("Packages", f"{shipment.total_pallets} pallets, {shipment.total_bags} bags"),
        ]
        for title, value in boxes:
            c.setFont("Helvetica-Bold", 9)
            c.drawString(MARGIN, y, title)
            c.setFont("Helvetica", 10)
            c.drawString(MARGIN + 150, y, value)
            y -= LINE_HEIGHT + 4

        y -= 10
        c.setFont("Helvetica-Oblique", 8)
        c.drawString(MARGIN, y, f"Shipment ID: {shipment.id}")

        c.save()
        logger.info(f"[Documents] CMR written: {path}")
        return path
