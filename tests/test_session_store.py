import pytest

from models.session_models import AppMode, GeneratedImage, Message, Role, UploadedImage
from services.session_store import SessionStore


def test_messages_keep_append_order(store):
    first = Message(role=Role.USER, text="one")
    second = Message(role=Role.MODEL, text="two")
    third = Message(role=Role.USER, text="three")
    for msg in (first, second, third):
        store.append_message(msg)
    assert [m.id for m in store.messages] == [first.id, second.id, third.id]


def test_duplicate_message_id_rejected(store):
    msg = Message(role=Role.USER, text="one")
    store.append_message(msg)
    with pytest.raises(ValueError):
        store.append_message(msg)
    assert len(store.messages) == 1


def test_images_are_most_recent_first(store):
    older = GeneratedImage(url="data:image/png;base64,AA==", prompt="old")
    newer = GeneratedImage(url="data:image/png;base64,AA==", prompt="new")
    store.append_image(older)
    store.append_image(newer)
    assert [img.prompt for img in store.images] == ["new", "old"]


def test_select_unknown_image_is_rejected(store):
    with pytest.raises(KeyError):
        store.select_image("missing")
    assert store.selected_image_id is None


def test_reselecting_same_image_is_idempotent(store):
    image = GeneratedImage(url="data:image/png;base64,AA==", prompt="p")
    store.append_image(image)
    events = []
    store.subscribe(lambda event, payload: events.append(event))

    store.select_image(image.id)
    store.select_image(image.id)
    store.select_image(image.id)

    assert store.selected_image is image
    assert events == ["image.selected"]


def test_clear_selection(store):
    image = GeneratedImage(url="data:image/png;base64,AA==", prompt="p")
    store.append_image(image)
    store.select_image(image.id)
    store.clear_selection()
    assert store.selected_image is None


def test_observers_see_events_in_mutation_order(store):
    events = []
    store.subscribe(lambda event, payload: events.append((event, payload)))

    msg = Message(role=Role.USER, text="hello")
    store.append_message(msg)
    store.set_search_enabled(True)
    store.set_busy(AppMode.CHAT, True)

    assert [event for event, _ in events] == ["message.appended", "search.changed", "busy.changed"]
    assert events[0][1]["message"]["id"] == msg.id
    assert events[2][1] == {"mode": "CHAT", "busy": True}


def test_unsubscribe_stops_notifications(store):
    events = []
    unsubscribe = store.subscribe(lambda event, payload: events.append(event))
    unsubscribe()
    store.set_search_enabled(True)
    assert events == []


def test_failing_listener_does_not_block_others(store):
    seen = []

    def broken(event, payload):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda event, payload: seen.append(event))
    store.append_message(Message(role=Role.USER, text="hi"))

    assert seen == ["message.appended"]
    assert len(store.messages) == 1


def test_new_vision_image_clears_previous_result(store, png_bytes):
    store.set_vision_image(UploadedImage(data=png_bytes, mime_type="image/png"))
    store.set_vision_result("a square")
    store.set_vision_image(UploadedImage(data=png_bytes, mime_type="image/png", filename="again.png"))
    assert store.vision_result is None
    assert store.vision_image.filename == "again.png"


def test_snapshot_is_serializable_view(store):
    store.append_message(Message(role=Role.USER, text="hi"))
    snapshot = store.snapshot()
    assert snapshot["greeting"] == "hi"
    assert snapshot["messages"][0]["role"] == "user"
    assert snapshot["busy"] == {"CHAT": False, "VISION": False, "IMAGE_GEN": False}
    assert snapshot["vision"] == {"image": None, "result": None, "result_is_error": False}


def test_close_notifies_and_drops_listeners():
    store = SessionStore("s")
    events = []
    store.subscribe(lambda event, payload: events.append(event))
    store.close()
    store.set_search_enabled(True)
    assert store.closed
    assert events == ["session.closed"]
