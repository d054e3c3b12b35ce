"""Tests for Pre-Alert and CMR rendering."""

import re
from datetime import datetime

from dispatch_engine.services.documents import PdfDocumentGenerator
from dispatch_engine.services.intake import scan_detail


class TestPdfDocumentGenerator:
    def test_pre_alert_written_with_details(self, tmp_path, store):
        for _ in range(3):
            scan_detail(store, "SHP-1", "US-X-NYDOE-0-00007-Y-Z-Q-00500", customer="acme", service="prior")
        generator = PdfDocumentGenerator(tmp_path / "out", details_source=store)

        path = generator.generate_primary_document(store.get_shipment("SHP-1"))

        assert path == tmp_path / "out" / "pre-alert-SHP-1.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_pre_alert_spills_onto_extra_pages(self, tmp_path, store):
        for _ in range(80):
            scan_detail(store, "SHP-1", "FR007ABCDEFG123", customer="acme", service="eco", number_of_bags=2)
        generator = PdfDocumentGenerator(tmp_path, details_source=store)

        path = generator.generate_primary_document(store.get_shipment("SHP-1"))

        # 24 rows fit under the summary, 41 on each continuation page
        assert re.search(rb"/Count 3\b", path.read_bytes())

    def test_cmr_written(self, tmp_path, shipment_factory):
        shipment = shipment_factory(
            sender_address="Asendia UK, Fareham",
            consignee_address="La Poste, Paris",
            truck_registration="AB12 CDE",
            departure_date=datetime(2024, 5, 1),
        )
        generator = PdfDocumentGenerator(tmp_path)

        path = generator.generate_secondary_document(shipment)

        assert path.name == "cmr-SHP-1.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_generator_without_details_source_renders_summary_only(self, tmp_path, shipment):
        path = PdfDocumentGenerator(tmp_path).generate_primary_document(shipment)

        assert path.exists()
