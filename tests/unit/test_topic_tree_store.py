import pytest

from topic_tree import ROOT_ID, NodeNotFound, TopicTreeStore


def test_initialize_creates_root_and_path():
    store = TopicTreeStore.initialize("s1")
    root = store.get_node(ROOT_ID)
    assert root.name == "General Background"
    assert root.status == "exploring"
    assert root.depth == 0
    assert root.parent_id is None
    assert root.context == "Starting conversation"
    assert store.state.current_path == [ROOT_ID]


def test_create_child_uses_counter_ids():
    store = TopicTreeStore.initialize("s1")
    first = store.create_child(ROOT_ID, "Redis", "I run Redis clusters")
    second = store.create_child(ROOT_ID, "Redis", "more Redis")
    assert (first, second) == ("topic-1", "topic-2")
    assert store.get_node(ROOT_ID).children == ["topic-1", "topic-2"]
    child = store.get_node(first)
    assert child.depth == 1
    assert child.parent_id == ROOT_ID
    assert child.status == "unexplored"


def test_create_child_truncates_context():
    store = TopicTreeStore.initialize("s1")
    node_id = store.create_child(ROOT_ID, "Python", "x" * 250)
    assert len(store.get_node(node_id).context) == 100


def test_missing_parent_raises():
    store = TopicTreeStore.initialize("s1")
    with pytest.raises(NodeNotFound):
        store.create_child("topic-99", "Go", "")
    with pytest.raises(KeyError):
        store.get_node("nope")


def test_render_marks_current_node():
    store = TopicTreeStore.initialize("s1")
    store.create_child(ROOT_ID, "Redis", "")
    lines = store.render().splitlines()
    assert lines[0] == "[~] General Background (depth: 0) ← CURRENT"
    assert lines[1] == "  [ ] Redis (depth: 1)"


def test_path_names_joined_with_arrow():
    store = TopicTreeStore.initialize("s1")
    node_id = store.create_child(ROOT_ID, "Caching", "")
    store.state.current_path.append(node_id)
    assert store.path_names() == "General Background → Caching"


def test_restore_continues_sequence():
    store = TopicTreeStore.initialize("s1")
    store.create_child(ROOT_ID, "Redis", "")
    restored = TopicTreeStore.restore(store.snapshot())
    assert restored.create_child(ROOT_ID, "Kafka", "") == "topic-2"
    assert restored.state.current_path == [ROOT_ID]
