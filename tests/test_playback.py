import numpy as np
import pytest

from cognify.infrastructure.audio.playback import PlaybackScheduler, SpeakerOutput
from cognify.interview.testing import FakeAudioOutput, tone_pcm

RATE = 24000


def _scheduler(start: float = 0.0):
    output = FakeAudioOutput(now=start)
    return output, PlaybackScheduler(output, sample_rate=RATE)


def test_frames_play_back_to_back_without_gaps():
    output, scheduler = _scheduler(start=1.5)
    sizes = [2400, 4800, 1200, 2400]
    buffers = [scheduler.enqueue(tone_pcm(n)) for n in sizes]

    for prev, cur in zip(buffers, buffers[1:]):
        assert cur.start_time == pytest.approx(prev.end_time)
    assert buffers[0].start_time == pytest.approx(1.5)
    assert scheduler.next_start_time == pytest.approx(1.5 + sum(sizes) / RATE)


def test_late_frame_starts_at_current_clock():
    output, scheduler = _scheduler()
    first = scheduler.enqueue(tone_pcm(2400))  # 0.1 s
    output.advance(0.5)
    second = scheduler.enqueue(tone_pcm(2400))

    assert first.end_time == pytest.approx(0.1)
    assert second.start_time == pytest.approx(0.5)
    assert second.start_time >= first.end_time


def test_is_playing_tracks_in_flight_buffers():
    output, scheduler = _scheduler()
    assert not scheduler.is_playing

    scheduler.enqueue(tone_pcm(2400))
    scheduler.enqueue(tone_pcm(2400))
    assert scheduler.is_playing
    assert len(scheduler.active_buffers) == 2

    output.advance(0.1)
    assert len(scheduler.active_buffers) == 1
    output.advance(0.1)
    assert not scheduler.is_playing


def test_malformed_frames_are_dropped_without_moving_the_clock():
    output, scheduler = _scheduler()
    scheduler.enqueue(tone_pcm(2400))
    before = scheduler.next_start_time

    assert scheduler.enqueue(b"") is None
    assert scheduler.enqueue(b"\x01\x02\x03") is None
    assert scheduler.next_start_time == before
    assert len(output.played) == 1


def test_close_stops_in_flight_buffers_and_ignores_late_frames():
    output, scheduler = _scheduler()
    buffers = [scheduler.enqueue(tone_pcm(2400)) for _ in range(3)]
    assert len(output.playing) == 3

    scheduler.close()

    assert scheduler.is_closed
    assert not scheduler.is_playing
    assert output.playing == []
    assert set(output.stopped) == set(buffers)
    assert all(b.stopped for b in buffers)

    assert scheduler.enqueue(tone_pcm(2400)) is None
    assert len(output.played) == 3


def test_stopped_buffer_does_not_fire_completion():
    ended = []
    output, scheduler = _scheduler()
    buffer = scheduler.enqueue(tone_pcm(2400))
    buffer.on_ended = ended.append
    buffer.stopped = True
    buffer.finish()
    assert ended == []


def test_speaker_output_renders_scheduled_buffers_sample_accurately():
    speaker = SpeakerOutput(sample_rate=RATE)
    scheduler = PlaybackScheduler(speaker, sample_rate=RATE)
    scheduler.enqueue(tone_pcm(100, amplitude=0.5))
    scheduler.enqueue(tone_pcm(100, amplitude=0.25))

    block = speaker.render(150)
    assert block[:100] == pytest.approx(np.full(100, 0.5))
    assert block[100:] == pytest.approx(np.full(50, 0.25))
    assert scheduler.is_playing

    tail = speaker.render(100)
    assert tail[:50] == pytest.approx(np.full(50, 0.25))
    assert tail[50:] == pytest.approx(np.zeros(50))
    assert not scheduler.is_playing
    assert speaker.current_time == pytest.approx(250 / RATE)
