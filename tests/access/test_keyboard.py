"""Inline-клавиатуры гейтов."""
from filestore.access.keyboard import build_join_markup, build_verification_markup
from filestore.access.models import ChallengeLink
from filestore.storage.records import GateChannelInfo


def test_join_markup_has_button_per_channel_and_recheck():
    missing = [
        GateChannelInfo(channel_id="-1001", display_handle="@news"),
        GateChannelInfo(channel_id="-1002", display_handle="@chat"),
    ]

    rows = build_join_markup(missing, "recheck:a1b2c3d4")["inline_keyboard"]

    assert rows[0] == [{"text": "Join @news", "url": "https://t.me/news"}]
    assert rows[1] == [{"text": "Join @chat", "url": "https://t.me/chat"}]
    assert rows[-1][0]["callback_data"] == "recheck:a1b2c3d4"


def test_verification_markup():
    challenge = ChallengeLink(
        url="https://short.example/Xy12",
        deep_link="https://t.me/FileStoreTestBot?start=a1b2c3d4",
        shortened=True,
        ack_callback="verify:a1b2c3d4",
    )

    rows = build_verification_markup(challenge)["inline_keyboard"]

    assert rows[0][0]["url"] == "https://short.example/Xy12"
    assert rows[1][0]["callback_data"] == "verify:a1b2c3d4"
