"""Tests for messages posted by embedded frames."""

import pytest

from src.core.messages import (IframeErrorReport, MessageRejected, NavigationEvent,
                               WhatsAppRequest, parse_frame_message, respond)

ALLOWED = ["https://zyqsemod.gensparkspace.com", "http://localhost", "https://localhost"]
TIKTOK = "https://zyqsemod.gensparkspace.com"
GROUP = "https://chat.whatsapp.com/HukQMDMTtJjFi12x1lAty3"
PHONE = "6285890874888"


class TestParse:
    @pytest.mark.parametrize("origin", [
        "https://evil.example", "", "null", "https://gensparkspace.com",
        "http://localhost.evil.example",
        "https://zyqsemod.gensparkspace.com.evil.example",
        "http://zyqsemod.gensparkspace.com",
        "http://localhost:notaport",
    ])
    def test_foreign_origin_rejected(self, origin):
        with pytest.raises(MessageRejected):
            parse_frame_message(origin, {"type": "whatsapp_click"}, ALLOWED)

    @pytest.mark.parametrize("origin", ["http://localhost:5173", "https://localhost",
                                        "https://ZYQSEMOD.gensparkspace.com"])
    def test_allowed_origin_any_port_when_unpinned(self, origin):
        msg = parse_frame_message(origin, {"type": "whatsapp_click"}, ALLOWED)
        assert isinstance(msg, WhatsAppRequest)

    def test_pinned_port_must_match(self):
        allowed = ["http://localhost:3000"]
        assert isinstance(parse_frame_message("http://localhost:3000", "whatsapp", allowed),
                          WhatsAppRequest)
        with pytest.raises(MessageRejected):
            parse_frame_message("http://localhost:5173", "whatsapp", allowed)

    def test_whatsapp_request(self):
        msg = parse_frame_message(TIKTOK, {
            "type": "whatsapp_request", "action": "send_message", "requestId": "r1",
            "payload": {"phoneNumber": "0812345678", "message": "Halo"}}, ALLOWED)
        assert msg.action == "send_message"
        assert msg.request_id == "r1"
        assert msg.payload["phoneNumber"] == "0812345678"

    def test_navigation_event(self):
        msg = parse_frame_message(TIKTOK, {"type": "navigation_event",
                                           "url": "https://shop.example/x",
                                           "shouldOpenExternally": True}, ALLOWED)
        assert isinstance(msg, NavigationEvent)
        assert msg.should_open_externally

    def test_iframe_error(self):
        msg = parse_frame_message(TIKTOK, {"type": "iframe_error", "error": "boom"}, ALLOWED)
        assert isinstance(msg, IframeErrorReport)
        assert msg.error == "boom"

    def test_whatsapp_string(self):
        msg = parse_frame_message(TIKTOK, "open https://wa.me/123", ALLOWED)
        assert msg.action == "whatsapp_click"

    @pytest.mark.parametrize("data", [
        "hello", 42, None, ["whatsapp"],
        {"type": "unknown"},
        {"type": "whatsapp_request"},
        {"type": "whatsapp_request", "action": "send_message", "payload": "x"},
        {"type": "navigation_event"},
    ])
    def test_bad_shapes_rejected(self, data):
        with pytest.raises(MessageRejected):
            parse_frame_message(TIKTOK, data, ALLOWED)


class TestRespond:
    def test_send_message_plans_web_then_app_then_group(self):
        msg = WhatsAppRequest("send_message", {"phoneNumber": "0812345678", "message": "Halo"}, "r1")
        out = respond(msg, GROUP, PHONE)
        assert out["reply"] == {"type": "whatsapp_response", "success": True,
                                "message": "WhatsApp opened successfully", "requestId": "r1"}
        assert out["open"]["url"] == "https://web.whatsapp.com/send?phone=62812345678&text=Halo"
        assert out["open"]["alternates"] == [
            "https://wa.me/62812345678?text=Halo",
            "https://api.whatsapp.com/send?phone=62812345678&text=Halo",
            GROUP]

    def test_send_message_missing_fields(self):
        out = respond(WhatsAppRequest("send_message", {"phoneNumber": "0812"}, "r2"), GROUP, PHONE)
        assert out["reply"]["success"] is False
        assert out["reply"]["message"] == "Missing phone number or message"
        assert out["open"] is None

    def test_open_group(self):
        out = respond(WhatsAppRequest("open_whatsapp", request_id="r3"), GROUP, PHONE)
        assert out["open"]["url"] == GROUP
        assert out["reply"]["message"] == "WhatsApp Group opened"

    def test_click_shows_panel(self):
        out = respond(WhatsAppRequest("whatsapp_click"), GROUP, PHONE)
        assert out["showPanel"] is True
        assert out["reply"] is None

    def test_unknown_action(self):
        out = respond(WhatsAppRequest("dance", request_id="r4"), GROUP, PHONE)
        assert out["reply"] == {"type": "whatsapp_response", "success": False,
                                "message": "Unknown action", "requestId": "r4"}

    def test_external_navigation_opens_new_window(self):
        out = respond(NavigationEvent("https://shop.example/x", True), GROUP, PHONE,
                      frame_host="zyqsemod.gensparkspace.com")
        assert out["open"]["url"] == "https://shop.example/x"

    def test_internal_navigation_stays(self):
        out = respond(NavigationEvent("https://zyqsemod.gensparkspace.com/page", True), GROUP,
                      PHONE, frame_host="zyqsemod.gensparkspace.com")
        assert out["open"] is None

    def test_iframe_error_notifies(self):
        out = respond(IframeErrorReport("boom"), GROUP, PHONE)
        assert out["notify"] == "TikTok Cuan: boom"
