import json

from slidegen.plugins.slides_generate import prompts
from slidegen.schemas.content import CONTENT_TYPES, LAYOUT_TYPES
from fakes import OUTLINE


def test_outline_prompt_embeds_topic_and_shape():
    p = prompts.outline_prompt("  Solar energy  ")
    assert "for the following prompt: Solar energy." in p
    assert "at least 6 points" in p
    assert '"outlines": [' in p
    assert '"Point 6"' in p and '"Point 7"' not in p


def test_outline_messages_are_role_tagged():
    msgs = prompts.outline_messages("Solar energy")
    assert [m["role"] for m in msgs] == ["system", "user"]


def test_layout_prompt_embeds_enumerations_examples_and_outlines():
    p = prompts.layout_prompt(OUTLINE)
    for t in LAYOUT_TYPES + CONTENT_TYPES:
        assert t in p
    assert json.dumps(OUTLINE, indent=2) in p
    assert "UUID v4" in p
    assert '"image of"' in p
    assert "photorealistic" in p
    # minimal and full examples both present
    assert "Untitled Card" in p
    assert "Why distributed systems fail" in p


def test_prompts_are_deterministic():
    assert prompts.layout_prompt(OUTLINE) == prompts.layout_prompt(OUTLINE)
    assert prompts.outline_prompt("x") == prompts.outline_prompt("x")


def test_alt_prompt_limits_and_style():
    p = prompts.alt_text_prompt("a wind farm at dusk")
    assert '"a wind farm at dusk"' in p
    assert "At most 50 words" in p
    assert "photorealistic" in p
    assert "cartoonish" in p
