from dor_indexer.harvest.records import CollectionDescriptor
from dor_indexer.index.collections import merge
from dor_indexer.index.fields import FieldMap


def test_no_parents_adds_no_collection_fields():
    doc = FieldMap({"id": "oo000oo0000"})
    for parents in ([], ()):
        merged = merge(doc, parents)
        assert merged is doc
        assert "collection" not in merged
        assert "collection_with_title" not in merged
        assert "display_type" not in merged


def test_two_parents_keep_argument_order():
    doc = FieldMap({"id": "oo000oo0000"})
    merged = merge(
        doc,
        [CollectionDescriptor("oo333oo4444", "title2"), CollectionDescriptor("oo111oo2222", "title1")],
    )
    assert merged["collection"] == ["oo333oo4444", "oo111oo2222"]
    assert merged["collection_with_title"] == ["oo333oo4444-|-title2", "oo111oo2222-|-title1"]
    # the input document is left alone
    assert "collection" not in doc


def test_repeated_parent_is_not_deduplicated():
    parent = CollectionDescriptor("foo", "bar")
    merged = merge(FieldMap(), [parent, parent])
    assert merged["collection"] == ["foo", "foo"]
    assert merged["collection_with_title"] == ["foo-|-bar", "foo-|-bar"]


def test_display_type_falls_back_to_collection():
    merged = merge(FieldMap(), [CollectionDescriptor("c1", "t"), CollectionDescriptor("c2", "t", display_type="image")])
    assert merged["display_type"] == ["image"]


def test_explicit_display_type_wins():
    doc = FieldMap({"display_type": "book"})
    merged = merge(doc, [CollectionDescriptor("c1", "t", display_type="image")])
    assert merged["display_type"] == ["book"]
