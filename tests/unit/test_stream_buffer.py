import io

import pytest

import jsonmend as jm
from stream_buffer import InputBuffer, StreamRepairer

def test_input_buffer_serves_pushed_chunks():
    buf = InputBuffer()
    buf.push('{"a":')
    buf.push("1}")
    assert buf.substring(1, 4) == '"a"'
    assert buf.substring(3, 6) == '":1'
    assert buf.current_length() == 7

def test_input_buffer_requires_close_for_length():
    buf = InputBuffer()
    buf.push("[1]")
    with pytest.raises(ValueError):
        buf.length()
    buf.close()
    assert buf.closed
    assert buf.length() == 3

def test_input_buffer_rejects_unreceived_text():
    buf = InputBuffer()
    buf.push("ab")
    with pytest.raises(IndexError) as ei:
        buf.substring(0, 3)
    assert "Index out of range" in str(ei.value)
    buf.close()
    assert buf.substring(0, 3) == "ab"

def test_stream_repairer_matches_full_text_repair():
    text = "{name: 'jsonmend', tags: ['a', 'b',], 'nested': {\"ok\": True"
    repairer = StreamRepairer(chunk_size=3)
    for start in range(0, len(text), 5):
        repairer.push(text[start:start + 5])
    assert repairer.close() == jm.repair(text)

def test_stream_repairer_feed_reads_in_chunks():
    text = '{"a":1}\n{"a":2}\n'
    repairer = StreamRepairer(chunk_size=4)
    repairer.feed(io.StringIO(text))
    assert repairer.chunks == 4
    assert repairer.close() == jm.repair(text)

def test_stream_repairer_rejects_push_after_close():
    repairer = StreamRepairer()
    repairer.push("[1")
    assert repairer.close() == "[1]"
    with pytest.raises(ValueError):
        repairer.push("]")

def test_stream_repairer_propagates_repair_errors():
    repairer = StreamRepairer()
    repairer.push("[1] 2")
    with pytest.raises(jm.JSONRepairError):
        repairer.close()

def test_stream_repairer_rejects_bad_chunk_size():
    with pytest.raises(ValueError):
        StreamRepairer(chunk_size=0)
