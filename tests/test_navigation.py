from docview.models import FileItem
from docview.navigation import (
    FileListCache,
    ThumbnailCache,
    adjacent_file,
    file_id,
    neighbors,
    sort_files,
)

KEYS = [
    "VOL00001/EFTA00000001.pdf",
    "VOL00002/EFTA00000002.pdf",
    "VOL00001/EFTA00000003.pdf",
    "VOL00002/EFTA00000004.pdf",
]


def test_file_id():
    assert file_id("VOL00001/EFTA00000001.pdf") == "EFTA00000001"
    assert file_id("misc/readme.pdf") == "misc/readme.pdf"


def test_sort_files_orders_by_document_id():
    files = [FileItem(key=k) for k in reversed(KEYS)]
    assert [f.key for f in sort_files(files)] == KEYS


def test_adjacent_file():
    assert adjacent_file(KEYS, KEYS[1], 1) == KEYS[2]
    assert adjacent_file(KEYS, KEYS[1], -1) == KEYS[0]
    assert adjacent_file(KEYS, KEYS[0], -1) is None
    assert adjacent_file(KEYS, KEYS[3], 1) is None
    assert adjacent_file(KEYS, "missing.pdf", 1) is None


def test_adjacent_file_within_collection():
    assert adjacent_file(KEYS, KEYS[0], 1, collection="VOL00001") == KEYS[2]
    assert adjacent_file(KEYS, KEYS[0], 1, collection="All") == KEYS[1]
    assert adjacent_file(KEYS, KEYS[1], 1, collection="VOL00001") is None


def test_neighbors():
    assert neighbors(KEYS, KEYS[1], ahead=5) == (KEYS[2:], KEYS[0])
    assert neighbors(KEYS, KEYS[0], ahead=1) == ([KEYS[1]], None)
    assert neighbors(KEYS, "missing.pdf") == ([], None)


def test_file_list_cache_dedupes_appends():
    cache = FileListCache()
    assert cache.has_more is True

    added = cache.append([FileItem(key=KEYS[2]), FileItem(key=KEYS[0])], "c1", True)
    assert added == 2
    added = cache.append([FileItem(key=KEYS[0]), FileItem(key=KEYS[1])], None, False)
    assert added == 1

    assert [f.key for f in cache.files] == [KEYS[2], KEYS[0], KEYS[1]]
    assert cache.keys() == [KEYS[0], KEYS[1], KEYS[2]]
    assert cache.cursor is None
    assert cache.has_more is False

    cache.reset()
    assert cache.files == []
    assert cache.has_more is True


def test_thumbnail_cache():
    thumbs = ThumbnailCache()
    assert thumbs.get("A.pdf") is None
    thumbs.set("A.pdf", "data:image/jpeg;base64,AA==")
    assert thumbs.get("A.pdf") == "data:image/jpeg;base64,AA=="
    assert len(thumbs) == 1
