"""
Tests for bounded recursive folder scanning.
"""

from datetime import datetime

import pytest

from cascade_extractor.folder_scanner import FolderScanner, scan_folder


def touch(path, content=b"%PDF-1.4"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def document_tree(tmp_path):
    touch(tmp_path / "a.pdf")
    touch(tmp_path / "b.PDF")
    touch(tmp_path / "notes.txt")
    touch(tmp_path / ".hidden.pdf")
    touch(tmp_path / "sub" / "c.pdf")
    touch(tmp_path / "sub" / "deep" / "d.pdf")
    touch(tmp_path / "node_modules" / "e.pdf")
    touch(tmp_path / "my_backup_2020" / "f.pdf")
    touch(tmp_path / ".git" / "g.pdf")
    touch(tmp_path / "~archive" / "h.pdf")
    return tmp_path


def names(descriptors):
    return [d.name for d in descriptors]


def test_finds_documents_and_skips_denylisted(document_tree):
    found = scan_folder(document_tree)
    assert names(found) == ["a.pdf", "b.PDF", "c.pdf", "d.pdf"]


def test_descriptors(document_tree):
    found = scan_folder(document_tree)
    nested = found[-1]

    assert nested.relative_path.replace("\\", "/") == "sub/deep/d.pdf"
    assert nested.path == str(document_tree / "sub" / "deep" / "d.pdf")
    assert nested.size == len(b"%PDF-1.4")
    assert isinstance(nested.modified, datetime)


@pytest.mark.parametrize("max_files,expected", [
    (1, ["a.pdf"]),
    (2, ["a.pdf", "b.PDF"]),
    (3, ["a.pdf", "b.PDF", "c.pdf"]),
])
def test_result_cap(document_tree, max_files, expected):
    assert names(scan_folder(document_tree, max_files=max_files)) == expected


def test_depth_limit(document_tree):
    found = scan_folder(document_tree, scanner=FolderScanner(max_depth=1))
    assert names(found) == ["a.pdf", "b.PDF", "c.pdf"]


def test_files_before_subdirectories(tmp_path):
    touch(tmp_path / "a_folder" / "x.pdf")
    touch(tmp_path / "z.pdf")
    assert names(scan_folder(tmp_path)) == ["z.pdf", "x.pdf"]


def test_budget_shared_across_subdirectories(tmp_path):
    for folder in ("one", "two", "three"):
        for i in range(3):
            touch(tmp_path / folder / f"{folder}-{i}.pdf")
    assert len(scan_folder(tmp_path, max_files=4)) == 4


def test_denylist_is_case_insensitive_substring(tmp_path):
    touch(tmp_path / "Old Backups" / "x.pdf")
    touch(tmp_path / "CACHE_2021" / "y.pdf")
    touch(tmp_path / "reports" / "z.pdf")
    assert names(scan_folder(tmp_path)) == ["z.pdf"]


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        scan_folder(tmp_path / "missing")


def test_file_as_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        scan_folder(touch(tmp_path / "a.pdf"))


def test_empty_folder(tmp_path):
    assert scan_folder(tmp_path) == []
