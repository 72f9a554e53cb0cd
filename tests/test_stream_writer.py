"""Tests for the delta stream writer."""

import asyncio

from mcpchat.models.stream import ArtifactDeltaChunk, TextChunk, ToolResultChunk
from mcpchat.services.stream_writer import DeltaStreamWriter


async def drain(writer: DeltaStreamWriter) -> list:
    return [chunk async for chunk in writer]


class TestDeltaStreamWriter:
    """Tests for ordering, closing and aborting."""

    def test_chunks_read_in_write_order(self):
        """Test that consumers observe exactly the write order."""

        async def scenario():
            writer = DeltaStreamWriter()
            writer.write(TextChunk(text="a"))
            writer.write_delta("image", "first")
            writer.write(ToolResultChunk(tool_call_id="c1", result=1))
            writer.write_delta("image", "second")
            writer.close()
            return await drain(writer)

        chunks = asyncio.run(scenario())

        assert [chunk.type for chunk in chunks] == ["text", "image-delta", "tool_result", "image-delta"]
        assert chunks[1].content == "first"
        assert chunks[3].content == "second"

    def test_concurrent_writers_keep_completion_order(self):
        """Test that writes from concurrent tasks follow the order they happened in."""

        async def settle(writer: DeltaStreamWriter, call_id: str, delay: float):
            await asyncio.sleep(delay)
            writer.write(ToolResultChunk(tool_call_id=call_id, result=call_id))

        async def scenario():
            writer = DeltaStreamWriter()
            await asyncio.gather(settle(writer, "slow", 0.03), settle(writer, "fast", 0.0), settle(writer, "mid", 0.01))
            writer.close()
            return await drain(writer)

        chunks = asyncio.run(scenario())
        assert [chunk.tool_call_id for chunk in chunks] == ["fast", "mid", "slow"]

    def test_writes_after_close_are_dropped(self):
        """Test that a closed stream accepts nothing more."""

        async def scenario():
            writer = DeltaStreamWriter()
            assert writer.write(TextChunk(text="kept")) is True
            writer.close()
            assert writer.write(TextChunk(text="late")) is False
            return writer, await drain(writer)

        writer, chunks = asyncio.run(scenario())
        assert [chunk.text for chunk in chunks] == ["kept"]
        assert writer.written == 1

    def test_abort_keeps_written_chunks(self):
        """Test that aborting stops writes without retracting earlier chunks."""

        async def scenario():
            writer = DeltaStreamWriter()
            writer.write(ToolResultChunk(tool_call_id="c1", result="done"))
            writer.abort()
            accepted = writer.write(ToolResultChunk(tool_call_id="c2", result="late"))
            return writer, accepted, await drain(writer)

        writer, accepted, chunks = asyncio.run(scenario())

        assert accepted is False
        assert writer.aborted is True
        assert writer.is_open is False
        assert [chunk.tool_call_id for chunk in chunks] == ["c1"]

    def test_consumer_waits_for_writes(self):
        """Test that iteration suspends until the producer writes or closes."""

        async def producer(writer: DeltaStreamWriter):
            await asyncio.sleep(0.01)
            writer.write(ArtifactDeltaChunk.for_kind("image", "data"))
            await asyncio.sleep(0.01)
            writer.close()

        async def scenario():
            writer = DeltaStreamWriter()
            task = asyncio.create_task(producer(writer))
            chunks = await drain(writer)
            await task
            return chunks

        chunks = asyncio.run(scenario())
        assert [chunk.type for chunk in chunks] == ["image-delta"]

    def test_iteration_after_end_stays_ended(self):
        """Test that a finished stream cannot be replayed."""

        async def scenario():
            writer = DeltaStreamWriter()
            writer.write(TextChunk(text="once"))
            writer.close()
            first = await drain(writer)
            second = await drain(writer)
            return first, second

        first, second = asyncio.run(scenario())
        assert len(first) == 1
        assert second == []
