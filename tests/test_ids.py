"""Session identifier shape and uniqueness."""
import re

from seigate.ids import generate_session_id

UUID4_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_generated_id_shape():
    for _ in range(500):
        session_id = generate_session_id()
        assert len(session_id) == 36
        assert UUID4_SHAPE.match(session_id), session_id
        assert session_id[14] == "4"
        assert session_id[19] in "89ab"


def test_generated_ids_are_distinct():
    ids = {generate_session_id() for _ in range(1000)}
    assert len(ids) == 1000
