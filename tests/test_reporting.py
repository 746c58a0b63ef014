from hostscan.probe import DeviceRecord
from hostscan.reporting import create_report_data, print_result, progress_bar, sort_records


RECORDS = [
    DeviceRecord("10.0.0.10", "nas.lan", 4, True),
    DeviceRecord("10.0.0.9", "unknown", -1, False),
    DeviceRecord("10.0.0.2", "router.lan", 2, True),
]


def test_sort_records_is_numeric():
    assert [r.address for r in sort_records(RECORDS)] == ["10.0.0.2", "10.0.0.9", "10.0.0.10"]


def test_report_summary():
    report = create_report_data("10.0.0.0/28", RECORDS)

    summary = report['summary']
    assert summary['subnet'] == "10.0.0.0/28"
    assert summary['hosts_scanned'] == 3
    assert summary['hosts_up'] == 2
    assert summary['named_hosts'] == 2
    assert summary['avg_latency_ms'] == 3.0
    assert [h['ip'] for h in report['hosts']] == ["10.0.0.2", "10.0.0.9", "10.0.0.10"]


def test_report_without_live_hosts():
    report = create_report_data("10.0.0.0/30", [DeviceRecord.unreachable("10.0.0.1")])

    assert report['summary']['hosts_up'] == 0
    assert report['summary']['avg_latency_ms'] is None


def test_progress_bar():
    assert progress_bar(0, width=10) == "[----------]   0%"
    assert progress_bar(50, width=10) == "[#####-----]  50%"
    assert progress_bar(150, width=10) == "[##########] 100%"


def test_print_result(capsys):
    print_result("10.0.0.2", 2, "router.lan", "up")
    print_result("10.0.0.9", -1, "unknown", "down", "no answer")

    out = capsys.readouterr().out.splitlines()
    assert "10.0.0.2" in out[0] and "2ms" in out[0] and "UP" in out[0]
    assert "--" in out[1] and "DOWN" in out[1] and "| no answer" in out[1]
