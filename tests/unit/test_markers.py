"""Assistant response markers: progress bars and action links."""

from __future__ import annotations

from g15.assistant.markers import enhance_response


class TestProgressMarkers:
    def test_progress_marker_replaced(self):
        text, visuals = enhance_response("You're close! [PROGRESS:Vacation:250:1000]")
        assert text == "You're close! Vacation: $250 of $1000 (25% complete)"
        assert visuals == [{
            "type": "progress",
            "data": {"name": "Vacation", "current": 250.0, "target": 1000.0, "percentage": 25},
        }]

    def test_percentage_capped_at_100(self):
        _, visuals = enhance_response("[PROGRESS:Car:1500:1000]")
        assert visuals[0]["data"]["percentage"] == 100

    def test_percentage_rounded(self):
        _, visuals = enhance_response("[PROGRESS:Fund:1:3]")
        assert visuals[0]["data"]["percentage"] == 33

    def test_zero_target(self):
        _, visuals = enhance_response("[PROGRESS:Empty:10:0]")
        assert visuals[0]["data"]["percentage"] == 0

    def test_dollar_signs_and_commas_tolerated(self):
        _, visuals = enhance_response("[PROGRESS:House:$1,500:$30,000]")
        assert visuals[0]["data"]["current"] == 1500.0
        assert visuals[0]["data"]["target"] == 30000.0

    def test_non_numeric_marker_left_alone(self):
        text, visuals = enhance_response("[PROGRESS:Vacation:lots:more]")
        assert text == "[PROGRESS:Vacation:lots:more]"
        assert visuals == []


class TestActionMarkers:
    def test_action_marker_replaced_by_label(self):
        text, visuals = enhance_response("Review it here: [ACTION:Open budget:/budget]")
        assert text == "Review it here: Open budget"
        assert visuals == [{"type": "link", "data": {"text": "Open budget", "url": "/budget"}}]

    def test_mixed_markers_keep_order_by_kind(self):
        text, visuals = enhance_response(
            "[ACTION:See goals:/goals] then [PROGRESS:Bike:50:200]"
        )
        assert text == "See goals then Bike: $50 of $200 (25% complete)"
        assert [v["type"] for v in visuals] == ["progress", "link"]


def test_plain_text_untouched():
    text, visuals = enhance_response("Spend less on coffee.")
    assert text == "Spend less on coffee."
    assert visuals == []
