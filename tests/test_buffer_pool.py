from azopenai_lib.utils.buffer_pool import Buffer, BufferPool


def test_buffer_reads_in_pieces():
    buff = Buffer()
    buff.reset(b"hello world")
    assert len(buff) == 11
    assert buff.read(5) == b"hello"
    assert len(buff) == 6
    assert buff.read() == b" world"
    assert buff.read() == b""
    assert len(buff) == 0


def test_round_trip_leaves_clean_buffer():
    pool = BufferPool(capacity=4)
    buff = pool.get()
    buff.reset(b"x" * 128)
    assert buff.read(64) == b"x" * 64
    pool.put(buff)

    again = pool.get()
    assert again is buff
    assert len(again) == 0
    assert again.read() == b""


def test_overflow_keeps_buffers_beyond_ring_capacity():
    pool = BufferPool(capacity=2)
    buffers = [pool.get() for _ in range(3)]
    for i, b in enumerate(buffers):
        b.reset(bytes([i]) * 10)
        pool.put(b)

    assert len(pool) == 3
    served = [pool.get() for _ in range(3)]
    assert {id(b) for b in served} == {id(b) for b in buffers}
    assert all(len(b) == 0 for b in served)
    assert len(pool) == 0


def test_empty_pool_creates_new_buffers():
    pool = BufferPool(capacity=1)
    assert pool.get() is not pool.get()
