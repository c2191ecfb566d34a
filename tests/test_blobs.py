import pytest

from pilot_store.blobs import BlobStore
from pilot_store.errors import DocumentNotFoundError
from pilot_store.models import Target
from pilot_store.utils import original_name_from_stored, sanitize_file_name, stored_file_name_for


@pytest.mark.asyncio
async def test_store_then_read_pdf(tmp_path):
    store = BlobStore(tmp_path)
    target = Target.project("p1")
    data = b"%PDF-1.7 fake"
    doc = await store.store(target, "doc-1", "report.pdf", data)
    assert doc.kind == "pdf"
    assert doc.size_bytes == len(data)
    assert (tmp_path / "projects" / "p1" / "documents" / doc.stored_file_name).exists()

    blob = await store.read(target, doc.stored_file_name)
    assert blob.original_file_name == "report.pdf"
    assert blob.data == data
    assert blob.kind == "pdf"


@pytest.mark.asyncio
async def test_thread_blobs_live_under_threads_dir(tmp_path):
    store = BlobStore(tmp_path)
    doc = await store.store(Target.thread("thread-abc"), "d1", "table.csv", b"a,b\n1,2\n")
    assert doc.kind == "tabular"
    assert (tmp_path / "threads" / "thread-abc" / "documents" / doc.stored_file_name).exists()
    assert not (tmp_path / "projects").exists()


def test_routing_follows_target_kind_not_id_text(tmp_path):
    store = BlobStore(tmp_path)
    assert store.documents_dir(Target.project("thread-looking-id")).parent.parent.name == "projects"
    assert store.documents_dir(Target.thread("project-1")).parent.parent.name == "threads"


@pytest.mark.asyncio
async def test_same_original_name_does_not_collide(tmp_path):
    store = BlobStore(tmp_path)
    target = Target.project("p1")
    a = await store.store(target, "doc-a", "data.xlsx", b"A")
    b = await store.store(target, "doc-b", "data.xlsx", b"B")
    assert a.stored_file_name != b.stored_file_name
    assert (await store.read(target, a.stored_file_name)).data == b"A"
    assert (await store.read(target, b.stored_file_name)).data == b"B"


@pytest.mark.asyncio
async def test_read_missing_raises_not_found(tmp_path):
    store = BlobStore(tmp_path)
    with pytest.raises(DocumentNotFoundError):
        await store.read(Target.project("p1"), "nope-file.csv")
    with pytest.raises(FileNotFoundError):
        await store.read(Target.project("p1"), "nope-file.csv")


@pytest.mark.asyncio
async def test_delete_is_idempotent(tmp_path):
    store = BlobStore(tmp_path)
    target = Target.project("p1")
    doc = await store.store(target, "doc-1", "x.csv", b"1")
    await store.delete(target, doc.stored_file_name)
    await store.delete(target, doc.stored_file_name)
    with pytest.raises(DocumentNotFoundError):
        await store.read(target, doc.stored_file_name)


@pytest.mark.asyncio
async def test_delete_target_removes_thread_directory(tmp_path):
    store = BlobStore(tmp_path)
    target = Target.thread("t1")
    await store.store(target, "d1", "a.csv", b"1")
    await store.delete_target(target)
    assert not (tmp_path / "threads" / "t1").exists()
    await store.delete_target(target)


def test_names_are_sanitized():
    assert sanitize_file_name("my report (1).csv") == "my_report__1_.csv"
    assert sanitize_file_name("../../etc/passwd") == ".._.._etc_passwd"
    assert len(sanitize_file_name("x" * 500)) == 180
    stored = stored_file_name_for("doc-1-2", "Q1 sales.csv")
    assert stored == "doc_1_2-Q1_sales.csv"
    assert original_name_from_stored(stored) == "Q1_sales.csv"


@pytest.mark.asyncio
async def test_read_cannot_escape_documents_dir(tmp_path):
    store = BlobStore(tmp_path)
    (tmp_path / "secret.txt").write_text("s", encoding="utf-8")
    with pytest.raises(DocumentNotFoundError):
        await store.read(Target.project("p1"), "../../../secret.txt")
