"""
Unit tests for the local filesystem file store
"""

import pytest

from core.exceptions import FileStoreError
from ingestion.stores.local import LocalFileStore


@pytest.fixture
def store(tmp_path):
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    (inbox / "b.csv").write_text("2024-01-06,2\n")
    (inbox / "a.csv").write_text("2024-01-05,1\n")
    (inbox / "notes.txt").write_text("not a feed file")
    (inbox / "nested").mkdir()
    return LocalFileStore(str(tmp_path))


class TestLocalFileStore:
    """Test LocalFileStore"""

    @pytest.mark.asyncio
    async def test_list_sorted_files_only(self, store):
        handles = await store.list_files("inbox")

        assert [h.name for h in handles] == ["a.csv", "b.csv", "notes.txt"]
        assert handles[0].content_type == "text/csv"

    @pytest.mark.asyncio
    async def test_list_missing_location(self, store):
        with pytest.raises(FileStoreError) as exc_info:
            await store.list_files("nowhere")

        assert exc_info.value.context["operation"] == "list"

    @pytest.mark.asyncio
    async def test_read_content(self, store):
        handle = (await store.list_files("inbox"))[0]

        assert await store.read_content(handle) == b"2024-01-05,1\n"

    @pytest.mark.asyncio
    async def test_move_creates_archive(self, store, tmp_path):
        handle = (await store.list_files("inbox"))[0]

        await store.move(handle, "inbox", "archive")

        assert (tmp_path / "archive" / "a.csv").exists()
        assert not (tmp_path / "inbox" / "a.csv").exists()

    @pytest.mark.asyncio
    async def test_move_same_name_twice(self, store, tmp_path):
        """Banks reuse export names; each archived copy is kept"""
        first = (await store.list_files("inbox"))[0]
        await store.move(first, "inbox", "archive")

        (tmp_path / "inbox" / "a.csv").write_text("2024-01-07,3\n")
        second = (await store.list_files("inbox"))[0]
        await store.move(second, "inbox", "archive")

        assert not (tmp_path / "inbox" / "a.csv").exists()
        assert (tmp_path / "archive" / "a.csv").read_text() == "2024-01-05,1\n"
        assert (tmp_path / "archive" / "a (1).csv").read_text() == "2024-01-07,3\n"

    @pytest.mark.asyncio
    async def test_move_skips_taken_suffixes(self, store, tmp_path):
        (tmp_path / "archive").mkdir()
        (tmp_path / "archive" / "a.csv").write_text("older")
        (tmp_path / "archive" / "a (1).csv").write_text("old")
        handle = (await store.list_files("inbox"))[0]

        await store.move(handle, "inbox", "archive")

        assert (tmp_path / "archive" / "a.csv").read_text() == "older"
        assert (tmp_path / "archive" / "a (1).csv").read_text() == "old"
        assert (tmp_path / "archive" / "a (2).csv").read_text() == "2024-01-05,1\n"

    @pytest.mark.asyncio
    async def test_move_from_wrong_location(self, store, tmp_path):
        (tmp_path / "other").mkdir()
        handle = (await store.list_files("inbox"))[0]

        with pytest.raises(FileStoreError):
            await store.move(handle, "other", "archive")

    @pytest.mark.asyncio
    async def test_read_after_move_fails(self, store):
        handle = (await store.list_files("inbox"))[0]
        await store.move(handle, "inbox", "archive")

        with pytest.raises(FileStoreError):
            await store.read_content(handle)
