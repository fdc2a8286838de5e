from restgen.core.compiler import PartialDescriptor, compile_partial_update, partial_model
from restgen.core.compiler.records import present_fields
from restgen.core.entity import extract_entity


def _entity(db="sqlite", stamped=True):
    fields = [{"name": "id"}, {"name": "title"}, {"name": "content"}, {"name": "views", "type": "integer"}]
    if stamped:
        fields += [{"name": "created_at"}, {"name": "updated_at"}]
    return extract_entity({"name": "Post", "rest_api": {"table": "post", "db": db}, "fields": fields})


def test_partial_descriptor_drops_only_the_id():
    partial = PartialDescriptor.from_entity(_entity())
    assert partial.field_names == ("title", "content", "views", "created_at", "updated_at")


def test_no_present_fields_compiles_to_nothing():
    partial = PartialDescriptor.from_entity(_entity())
    assert compile_partial_update(partial, {}, 1) is None


def test_subset_in_declaration_order_with_timestamp_bump():
    partial = PartialDescriptor.from_entity(_entity())
    stmt = compile_partial_update(partial, {"views": 3, "title": "c"}, 9)

    assert stmt.sql == "UPDATE post SET title = ?, views = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
    assert stmt.params == ("c", 3, 9)


def test_no_timestamp_bump_without_updated_field():
    partial = PartialDescriptor.from_entity(_entity(stamped=False))
    stmt = compile_partial_update(partial, {"content": "x"}, 1)
    assert stmt.sql == "UPDATE post SET content = ? WHERE id = ?"


def test_explicit_updated_timestamp_is_bound_not_bumped():
    partial = PartialDescriptor.from_entity(_entity())
    stmt = compile_partial_update(partial, {"updated_at": "2000-01-01 00:00:00"}, 1)
    assert stmt.sql == "UPDATE post SET updated_at = ? WHERE id = ?"
    assert stmt.params == ("2000-01-01 00:00:00", 1)


def test_explicit_null_is_present():
    partial = PartialDescriptor.from_entity(_entity())
    stmt = compile_partial_update(partial, {"content": None}, 1)
    assert stmt.params == (None, 1)


def test_unknown_keys_and_id_are_ignored():
    partial = PartialDescriptor.from_entity(_entity())
    assert compile_partial_update(partial, {"id": 5, "nope": 1}, 1) is None


def test_postgres_ordinals_follow_present_fields():
    partial = PartialDescriptor.from_entity(_entity("postgres"))
    stmt = compile_partial_update(partial, {"content": "b", "views": 2}, 4)
    assert stmt.sql == "UPDATE post SET content = $1, views = $2, updated_at = CURRENT_TIMESTAMP WHERE id = $3"
    assert stmt.params == ("b", 2, 4)


def test_partial_model_tracks_presence():
    partial = PartialDescriptor.from_entity(_entity())
    Model = partial_model(partial)

    body = Model.model_validate({"title": "t", "content": None})
    assert present_fields(body) == {"title": "t", "content": None}
    assert present_fields(Model.model_validate({})) == {}
