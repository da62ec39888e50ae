"""Test suite for the incremental SSE parser."""

from prd_reviewer.client.sse import SSEParser


class TestSSEParser:
    def test_single_frame(self) -> None:
        parser = SSEParser()

        assert parser.feed('data: {"type": "phase"}\n\n') == [{"type": "phase"}]

    def test_frame_split_across_chunks(self) -> None:
        # Arrange
        parser = SSEParser()

        # Act
        first = parser.feed('data: {"type": ')
        second = parser.feed('"progress"}\n')
        third = parser.feed("\n")

        # Assert
        assert first == []
        assert second == []
        assert third == [{"type": "progress"}]

    def test_keepalive_comments_are_skipped(self) -> None:
        parser = SSEParser()

        payloads = parser.feed(':keepalive\n\ndata: {"n": 1}\n\n:keepalive\n\n')

        assert payloads == [{"n": 1}]

    def test_multiple_frames_in_one_chunk(self) -> None:
        parser = SSEParser()

        payloads = parser.feed('data: {"n": 1}\n\ndata: {"n": 2}\r\n\r\n')

        assert payloads == [{"n": 1}, {"n": 2}]

    def test_malformed_frame_is_dropped(self) -> None:
        parser = SSEParser()

        payloads = parser.feed('data: {not json\n\ndata: {"n": 3}\n\n')

        assert payloads == [{"n": 3}]

    def test_multiline_data_is_joined(self) -> None:
        parser = SSEParser()

        payloads = parser.feed('data: {"n":\ndata: 4}\n\n')

        assert payloads == [{"n": 4}]
