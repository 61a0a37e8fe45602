"""
Tests for the revision model and its content-based identity.
"""

from reorder.core.revision import LineKey, RevisionTuple, RevType, rev_type_label, sort_revisions


def test_identity_ignores_rev_type_and_order():
    """Same entity and content are the same logical line regardless of anything else."""
    a = RevisionTuple(rev=1, entity_id=7, content="Suite 100", rev_type=RevType.INSERT, order_id=0)
    b = RevisionTuple(rev=9, entity_id=7, content="Suite 100", rev_type=RevType.DELETE, order_id=None)

    assert a == b
    assert hash(a) == hash(b)
    assert a.key == b.key == LineKey(7, "Suite 100")
    assert len({a, b}) == 1


def test_identity_distinguishes_entity_and_content():
    a = RevisionTuple(rev=1, entity_id=7, content="Suite 100", rev_type=0)

    assert a != RevisionTuple(rev=1, entity_id=8, content="Suite 100", rev_type=0)
    assert a != RevisionTuple(rev=1, entity_id=7, content="Suite 200", rev_type=0)


def test_order_id_is_mutable_and_does_not_change_identity():
    a = RevisionTuple(rev=1, entity_id=7, content="Main St", rev_type=0)
    key = a.key

    a.order_id = 3

    assert a.order_id == 3
    assert a.key == key


def test_from_row():
    """Loader rows are (rev, content, rev_type, order_id, row_number)."""
    r = RevisionTuple.from_row(42, (5, "PO Box 1", 1, None, 3))

    assert r.rev == 5
    assert r.entity_id == 42
    assert r.content == "PO Box 1"
    assert r.rev_type == RevType.UPDATE
    assert r.order_id is None
    assert r.row_number == 3


def test_sort_revisions_tie_break():
    """rev asc, then DELETE before UPDATE before INSERT, then order_id asc with nulls last."""
    rows = [
        RevisionTuple(rev=2, entity_id=1, content="c", rev_type=0, order_id=None),
        RevisionTuple(rev=2, entity_id=1, content="b", rev_type=0, order_id=1),
        RevisionTuple(rev=2, entity_id=1, content="a", rev_type=2, order_id=0),
        RevisionTuple(rev=1, entity_id=1, content="z", rev_type=0, order_id=5),
        RevisionTuple(rev=2, entity_id=1, content="d", rev_type=1, order_id=0),
    ]

    ordered = sort_revisions(rows)

    assert [r.content for r in ordered] == ["z", "a", "d", "b", "c"]


def test_rev_type_label():
    assert rev_type_label(0) == "INSERT"
    assert rev_type_label(2) == "DELETE"
    assert rev_type_label(9) == "9"
