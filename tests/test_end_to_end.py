"""Real worker threads driving the fake ffmpeg script."""

import pytest

from convertor.models import JobStatus
from convertor.notifier import LoggingNotifier
from convertor.scheduler import ConversionScheduler
from convertor.settings import Settings


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def scheduler(qapp, notifier, fake_ffmpeg, tmp_path):
    settings = Settings(
        max_concurrent_tasks=2,
        output_directory=tmp_path / "converted",
        ffmpeg_path=fake_ffmpeg,
    )
    scheduler = ConversionScheduler(settings, notifier=notifier)
    yield scheduler
    scheduler.shutdown()


def _statuses(scheduler):
    return [job.status for job in scheduler.jobs()]


def test_three_files_two_at_a_time(scheduler, notifier, make_flac, qtbot, tmp_path):
    for name in ("one.flac", "two.flac", "three.flac"):
        scheduler.submit(make_flac(name))

    scheduler.convert_all()
    assert _statuses(scheduler) == [JobStatus.CONVERTING, JobStatus.CONVERTING, JobStatus.PENDING]

    qtbot.waitUntil(lambda: not scheduler.is_running, timeout=30000)

    assert _statuses(scheduler) == [JobStatus.COMPLETED] * 3
    assert scheduler.active_count == 0
    for name in ("one", "two", "three"):
        assert (tmp_path / "converted" / f"{name}.m4a").is_file()
    assert sorted(j.name for j in notifier.completed) == ["one.flac", "three.flac", "two.flac"]


def test_mixed_outcomes(scheduler, make_flac, qtbot):
    ok = scheduler.submit(make_flac("fine.flac"))
    bad = scheduler.submit(make_flac("fail.flac"))
    empty = scheduler.submit(make_flac("noout.flac"))

    scheduler.convert_all()
    qtbot.waitUntil(lambda: not scheduler.is_running, timeout=30000)

    assert scheduler.job(ok.id).status is JobStatus.COMPLETED
    assert scheduler.job(bad.id).status is JobStatus.FAILED
    assert "exit code 1" in scheduler.job(bad.id).error_detail
    assert scheduler.job(empty.id).status is JobStatus.FAILED
    assert "Output file not created" in scheduler.job(empty.id).error_detail


def test_cancel_running_conversion_admits_next(scheduler, make_flac, qtbot):
    scheduler.set_max_concurrent_tasks(1)
    slow = scheduler.submit(make_flac("slow.flac"))
    after = scheduler.submit(make_flac("after.flac"))

    scheduler.convert_all()
    qtbot.wait(300)
    scheduler.cancel(slow.id)

    qtbot.waitUntil(lambda: not scheduler.is_running, timeout=30000)
    assert scheduler.job(slow.id).status is JobStatus.CANCELLED
    assert scheduler.job(after.id).status is JobStatus.COMPLETED
