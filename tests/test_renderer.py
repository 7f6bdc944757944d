import pytest
from PIL import Image

from certgen.errors import MissingFieldError
from certgen.layout import LayoutResult
from certgen.renderer import CertificateRenderer, participant_anchor

LONG_NAME = " ".join(["BARTHOLOMEW"] * 8)  # 950px with 10px glyphs


def test_participant_anchor_switches_on_line_count():
    assert participant_anchor(LayoutResult(("ANA LEE",)), 1000) == pytest.approx(520)
    assert participant_anchor(LayoutResult(("ANA", "LEE")), 1000) == pytest.approx(450)
    assert participant_anchor(LayoutResult(("A", "B", "C")), 1000) == pytest.approx(450)


def test_plan_single_line_participant(fake_backend):
    plan = CertificateRenderer(fake_backend).plan(1000, 1000, "ana lee", "gold", "young coders")

    assert plan.participant.text == "ANA LEE"
    assert plan.participant.x == 80
    assert plan.participant.y == pytest.approx(520)
    assert plan.participant.weight == "regular"


def test_plan_wrapped_participant_starts_higher(fake_backend):
    plan = CertificateRenderer(fake_backend).plan(1000, 1000, LONG_NAME, "gold", "young coders")

    assert plan.participant.text.count("\n") == 1
    assert plan.participant.y == pytest.approx(450)


def test_plan_achievement_and_programme(fake_backend):
    plan = CertificateRenderer(fake_backend).plan(
        1000, 1000, "ana lee", "gold", "introduction to computational thinking for young coders"
    )

    assert plan.achievement.text == "GOLD"
    assert plan.achievement.y == pytest.approx(650)
    assert plan.achievement.weight == "regular"

    # Programme wraps at 40% of the width (400px)
    assert plan.programme.text == "INTRODUCTION TO COMPUTATIONAL THINKING\nFOR YOUNG CODERS"
    assert plan.programme.y == pytest.approx(800)
    assert plan.programme.weight == "bold"


def test_all_blocks_share_draw_width(fake_backend):
    plan = CertificateRenderer(fake_backend, margin=80).plan(1000, 600, "ana lee", "gold", "young coders")
    assert {block.max_width for block in plan.blocks} == {840}
    assert {block.x for block in plan.blocks} == {80}


@pytest.mark.parametrize("field", ["participant_name", "achievement_level", "programme_name"])
def test_plan_rejects_empty_fields(fake_backend, field):
    values = {"participant_name": "ana lee", "achievement_level": "gold", "programme_name": "young coders"}
    values[field] = "  "
    with pytest.raises(MissingFieldError) as exc:
        CertificateRenderer(fake_backend).plan(1000, 1000, **values)
    assert exc.value.field == field


def test_render_draws_three_blocks(fake_backend):
    image = Image.new("RGBA", (1200, 800), "white")
    plan = CertificateRenderer(fake_backend).render(image, "ana lee", "gold", "young coders")

    assert [call["text"] for call in fake_backend.drawn] == ["ANA LEE", "GOLD", "YOUNG CODERS"]
    assert [call["font"] for call in fake_backend.drawn] == ["regular", "regular", "bold"]
    assert fake_backend.drawn[0]["y"] == pytest.approx(416)
    assert all(call["max_width"] == 1040 for call in fake_backend.drawn)
    assert plan.width == 1200 and plan.height == 800
