from __future__ import annotations

import threading
import time

import pytest

from tests.corpus_factory import TEST_SETTINGS
from workflow.base import Module
from workflow.errors import ConfigurationError, PipeAbortedError, PipeClosedError, PipeTimeoutError
from workflow.pipes import BytePipe, CharPipe, Pipe, PipeKind
from workflow.ports import InputPort, OutputPort, connect


class DummyModule(Module):
    def __init__(self, name: str) -> None:
        super().__init__({"name": name}, settings=TEST_SETTINGS)

    def process(self) -> bool:  # pragma: no cover - not used in tests
        return True


def test_char_pipe_reads_until_end_of_stream():
    pipe = CharPipe(settings=TEST_SETTINGS)
    pipe.write("hello ")
    pipe.write("world")
    pipe.close()

    assert pipe.read_all() == "hello world"
    # end of stream is sticky and never blocks
    assert pipe.read() == ""
    assert pipe.read() == ""


def test_close_is_idempotent_and_signals_once():
    pipe = BytePipe(settings=TEST_SETTINGS)
    pipe.write(b"abc")
    pipe.close()
    pipe.close()

    assert pipe.read() == b"abc"
    assert pipe.read() == b""
    assert pipe._queue.empty()


def test_write_after_close_raises():
    pipe = CharPipe(settings=TEST_SETTINGS)
    pipe.close()
    with pytest.raises(PipeClosedError):
        pipe.write("late")


def test_abort_is_distinguishable_from_clean_close():
    pipe = CharPipe(settings=TEST_SETTINGS)
    pipe.producer = "upstream"
    pipe.write("partial")
    pipe.abort(RuntimeError("boom"))
    # a later close does not mask the abort
    pipe.close()

    assert pipe.read() == "partial"
    with pytest.raises(PipeAbortedError) as excinfo:
        pipe.read()
    assert excinfo.value.module == "upstream"
    assert isinstance(excinfo.value.cause, RuntimeError)
    with pytest.raises(PipeAbortedError):
        pipe.read()


def test_pipe_rejects_wrong_payload_type():
    with pytest.raises(TypeError):
        CharPipe(settings=TEST_SETTINGS).write(b"bytes")
    with pytest.raises(TypeError):
        BytePipe(settings=TEST_SETTINGS).write("text")


def test_base_pipe_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Pipe(settings=TEST_SETTINGS)


def test_full_pipe_blocks_writer_until_read():
    pipe = CharPipe(buffer_size=1, settings=TEST_SETTINGS)
    pipe.write("first")

    writer = threading.Thread(target=pipe.write, args=("second",), daemon=True)
    writer.start()
    time.sleep(0.2)
    assert writer.is_alive()

    assert pipe.read() == "first"
    writer.join(timeout=2)
    assert not writer.is_alive()
    assert pipe.read() == "second"


def test_detached_consumer_unblocks_writer():
    pipe = CharPipe(buffer_size=1, settings=TEST_SETTINGS)
    pipe.write("first")
    errors = []

    def write_second() -> None:
        try:
            pipe.write("second")
        except PipeClosedError as exc:
            errors.append(exc)

    writer = threading.Thread(target=write_second, daemon=True)
    writer.start()
    time.sleep(0.1)
    pipe.detach()
    writer.join(timeout=2)

    assert not writer.is_alive()
    assert len(errors) == 1


def test_read_timeout():
    pipe = CharPipe(read_timeout=0.05, settings=TEST_SETTINGS)
    with pytest.raises(PipeTimeoutError):
        pipe.read()


def test_port_rejects_unsupported_pipe_kind():
    module = DummyModule("consumer")
    port = InputPort("in", "bytes only", module, supported=(PipeKind.BYTES,))

    with pytest.raises(ConfigurationError) as excinfo:
        port.add_pipe(CharPipe(settings=TEST_SETTINGS))
    assert excinfo.value.module == "consumer"
    assert excinfo.value.field == "in"
    assert not port.connected


def test_input_port_binds_exactly_one_pipe():
    module = DummyModule("consumer")
    port = InputPort("in", "bytes", module, supported=(PipeKind.BYTES,))
    port.add_pipe(BytePipe(settings=TEST_SETTINGS))

    with pytest.raises(ConfigurationError):
        port.add_pipe(BytePipe(settings=TEST_SETTINGS))


def test_output_port_broadcast_tolerates_dead_consumer():
    module = DummyModule("producer")
    port = OutputPort("out", "text", module, supported=(PipeKind.CHARS, PipeKind.BYTES))
    alive = CharPipe(settings=TEST_SETTINGS)
    dead = CharPipe(settings=TEST_SETTINGS)
    raw = BytePipe(settings=TEST_SETTINGS)
    for pipe in (alive, dead, raw):
        port.add_pipe(pipe)
    dead.detach()

    delivered = port.write_text("payload")
    port.close()

    assert delivered == 1
    assert alive.read_all() == "payload"
    # byte pipes are not written by text broadcasts but are closed
    assert raw.read_all() == b""


def test_output_port_close_twice_delivers_one_end_of_stream():
    module = DummyModule("producer")
    port = OutputPort("out", "text", module, supported=(PipeKind.CHARS,))
    consumers = [CharPipe(settings=TEST_SETTINGS) for _ in range(3)]
    for pipe in consumers:
        port.add_pipe(pipe)

    port.write_text("x")
    port.close()
    port.close()

    assert port.closed
    for pipe in consumers:
        assert pipe.read() == "x"
        assert pipe.read() == ""
        assert pipe._queue.empty()


def test_connect_selects_shared_kind():
    producer = DummyModule("producer")
    consumer = DummyModule("consumer")
    out_port = OutputPort("out", "any", producer, supported=(PipeKind.CHARS, PipeKind.BYTES))
    in_port = InputPort("in", "text", consumer, supported=(PipeKind.CHARS,))

    pipe = connect(out_port, in_port, settings=TEST_SETTINGS)

    assert isinstance(pipe, CharPipe)
    assert pipe.producer == "producer"
    assert pipe.consumer == "consumer"
    assert in_port.pipe is pipe
    assert out_port.pipes(PipeKind.CHARS) == [pipe]


def test_connect_without_shared_kind_fails():
    out_port = OutputPort("out", "text", DummyModule("producer"), supported=(PipeKind.CHARS,))
    in_port = InputPort("in", "bytes", DummyModule("consumer"), supported=(PipeKind.BYTES,))

    with pytest.raises(ConfigurationError):
        connect(out_port, in_port, settings=TEST_SETTINGS)
    with pytest.raises(ConfigurationError):
        connect(out_port, in_port, PipeKind.BYTES, settings=TEST_SETTINGS)
    assert not in_port.connected
