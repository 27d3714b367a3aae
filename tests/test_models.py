from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from chatbuysell.models.chat import ChatRoom, Message, MessageStatus, RoomDetail, RoomRole
from chatbuysell.models.identity import Identity, IdentityType
from chatbuysell.models.post import MatchCandidate, MatchResults, Post, PostType


class TestIdentity:
    def test_blank_type_is_unspecified(self):
        identity = Identity.model_validate({"id": "u1", "type": ""})
        assert identity.type is IdentityType.UNSPECIFIED
        assert identity.display_name == "User"

    def test_round_trips_through_json(self):
        identity = Identity(id="u1", username="An", type="seller", access_token="tok")
        restored = Identity.model_validate_json(identity.model_dump_json(by_alias=True))
        assert restored == identity
        assert "accessToken" in identity.model_dump(by_alias=True)


class TestPost:
    def test_wire_aliases(self):
        post = Post.model_validate({
            "id": "p1", "userId": "u1", "content": "Bicycle, $50", "type": "ban",
            "price": 50, "keywords": None, "createdAt": "2024-05-01T10:00:00Z",
        })
        assert post.owner_id == "u1"
        assert post.type is PostType.WANT_TO_SELL
        assert post.keywords == []
        assert isinstance(post.created_at, datetime)

    def test_negative_price_rejected(self):
        with pytest.raises(PydanticValidationError):
            Post(id="p1", content="x", type=PostType.WANT_TO_BUY, price=-1)

    def test_parse_accepts_words_and_wire_values(self):
        assert PostType.parse("sell") is PostType.WANT_TO_SELL
        assert PostType.parse(" Buy ") is PostType.WANT_TO_BUY
        assert PostType.parse("mua") is PostType.WANT_TO_BUY
        with pytest.raises(ValueError):
            PostType.parse("rent")

    def test_match_results_keep_order_and_null_matches(self):
        results = MatchResults.model_validate({"matches": None, "pageSize": 10})
        assert results.matches == []
        assert results.page_size == 10

        raw = [
            {"post": {"id": f"p{i}", "content": "c", "type": "mua"}, "user": {"id": f"u{i}"}, "score": s}
            for i, s in enumerate([0.2, 0.9, 0.5])
        ]
        ordered = MatchResults.model_validate({"matches": raw})
        assert [m.post.id for m in ordered.matches] == ["p0", "p1", "p2"]

    def test_score_bounds(self):
        with pytest.raises(PydanticValidationError):
            MatchCandidate.model_validate({
                "post": {"id": "p", "content": "c", "type": "mua"}, "user": {"id": "u"}, "score": 1.5,
            })


class TestChat:
    def test_message_ownership_by_sender(self):
        msg = Message.model_validate({"id": "m1", "roomId": "r1", "senderId": "u1", "content": "hi"})
        assert msg.is_from("u1")
        assert not msg.is_from("u2")
        assert not msg.is_from(None)
        assert msg.status is MessageStatus.SENT
        assert "status" not in msg.model_dump(by_alias=True)

    def test_snake_case_search_payload(self):
        msg = Message.model_validate({"id": "m1", "room_id": "r1", "sender_id": "u1", "content": "hi"})
        assert msg.room_id == "r1"

    def test_role_for(self):
        assert ChatRoom(id="r", type="seller").role_for("u1") is RoomRole.SELLER
        room = ChatRoom.model_validate({"id": "r", "buyerId": "u1", "sellerId": "u2"})
        assert room.role_for("u1") is RoomRole.BUYER
        assert room.role_for("u2") is RoomRole.SELLER
        assert room.role_for("u3") is None

    def test_room_detail_null_messages(self):
        detail = RoomDetail.model_validate({"chatRoom": {"id": "r1"}, "messages": None})
        assert detail.messages == []
