from src.reverser.transcode.ffmpeg_progress import FFmpegProgressParser


def test_reports_percent_after_duration_is_known() -> None:
    seen: list[float] = []
    parser = FFmpegProgressParser(seen.append)

    parser("frame=   10 fps=0.0 q=28.0 size=0kB time=00:00:01.00 bitrate=N/A")
    parser("  Duration: 00:00:04.00, start: 0.000000, bitrate: 120 kb/s")
    parser("frame=   10 fps=0.0 q=28.0 size=0kB time=00:00:01.00 bitrate=N/A")
    parser("frame=   20 fps=0.0 q=28.0 size=0kB time=00:00:02.00 bitrate=N/A")

    assert parser.total_seconds == 4.0
    assert seen == [25.0, 50.0]


def test_clamps_and_throttles_updates() -> None:
    seen: list[float] = []
    parser = FFmpegProgressParser(seen.append, min_step=5.0)

    parser("Duration: 00:01:40.00, start: 0.0")
    parser("time=00:00:01.00")
    parser("time=00:00:02.00")
    parser("time=00:00:07.00")
    parser("time=00:02:00.00")

    assert seen == [1.0, 7.0, 100.0]


def test_ignores_unparseable_positions() -> None:
    seen: list[float] = []
    parser = FFmpegProgressParser(seen.append)

    parser("Duration: N/A, start: 0.000000, bitrate: N/A")
    parser("time=N/A bitrate=N/A")
    parser("time=00:00:01.00")

    assert seen == []
