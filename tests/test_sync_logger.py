"""sync_logger.py tests"""
from atelier.utils.sync_logger import SyncRunLog, read_report, recent_reports


class TestSyncRunLog:

    def test_counters(self):
        run_log = SyncRunLog("orders")
        run_log.imported(1, articles=2)
        run_log.imported(2, articles=1)
        run_log.skipped(3, "already present")
        run_log.failed(4, "line item without id")

        report = run_log.close()

        assert report.orders_seen == 4
        assert report.orders_imported == 2
        assert report.articles_inserted == 3
        assert report.orders_skipped == 1
        assert report.failures[0]["order_id"] == "4"

    def test_failures_capped(self):
        run_log = SyncRunLog("orders", keep_failures=2)
        for order_id in range(5):
            run_log.failed(order_id, "bad")
        report = run_log.close()
        assert report.orders_failed == 5
        assert len(report.failures) == 2

    def test_report_written_and_listed(self, tmp_path):
        run_log = SyncRunLog("orders", report_dir=tmp_path / "sync")
        run_log.imported(1, articles=1)
        run_log.close()

        reports = recent_reports(tmp_path / "sync", "orders")
        assert len(reports) == 1
        assert read_report(reports[0]).orders_imported == 1

    def test_no_report_without_dir(self, tmp_path):
        SyncRunLog("orders").close()
        assert recent_reports(tmp_path) == []
        assert recent_reports(tmp_path / "missing") == []

    def test_unreadable_report(self, tmp_path):
        path = tmp_path / "orders-broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert read_report(path) is None
