from errorbook.ai.prompts import (
    DIFFICULTY_INSTRUCTIONS,
    generate_analyze_prompt,
    generate_reanswer_prompt,
    generate_similar_question_prompt,
    replace_variables,
)


def test_replace_variables_blanks_unknown_names():
    out = replace_variables("a={{a}} b={{b}} c={c}", {"a": "1"})
    assert out == "a=1 b= c={c}"


def test_analyze_prompt_asks_for_tagged_sections():
    prompt = generate_analyze_prompt("zh")

    for tag in ("question_text", "answer_text", "analysis", "subject", "knowledge_points"):
        assert f"<{tag}>" in prompt
        assert f"</{tag}>" in prompt
    assert "{{" not in prompt
    assert "Simplified Chinese" in prompt
    assert "\\frac{1}{2}" in prompt


def test_analyze_prompt_grade_subject_and_tags():
    prompt = generate_analyze_prompt(
        "en", grade=10, subject="物理", knowledge_tags=["牛顿定律", "动量"]
    )

    assert "高一" in prompt
    assert "本题学科：物理" in prompt
    assert '"牛顿定律", "动量"' in prompt
    assert "in English" in prompt


def test_analyze_prompt_ignores_unknown_grade():
    assert "学生年级" not in generate_analyze_prompt("zh", grade=3)


def test_custom_template_and_provider_hints():
    prompt = generate_analyze_prompt(
        "zh",
        custom_template="CUSTOM {{language_instruction}} | {{provider_hints}}",
        provider_hints="HINTS",
    )
    assert prompt.startswith("CUSTOM IMPORTANT")
    assert prompt.endswith("| HINTS")


def test_similar_prompt_defaults_to_medium_difficulty():
    prompt = generate_similar_question_prompt("zh", "1+1=?", ["加法"], None)

    assert "DIFFICULTY LEVEL: MEDIUM" in prompt
    assert DIFFICULTY_INSTRUCTIONS["medium"] in prompt
    assert "Knowledge Points: 加法" in prompt
    assert "<question_image_required>" in prompt


def test_similar_prompt_difficulty_and_escaping():
    prompt = generate_similar_question_prompt(
        "en", 'He said "hi"\nthen left', ["a", "b"], "harder"
    )

    assert "DIFFICULTY LEVEL: HARDER" in prompt
    assert DIFFICULTY_INSTRUCTIONS["harder"] in prompt
    assert 'He said \\"hi\\"\\nthen left' in prompt
    assert "Knowledge Points: a, b" in prompt


def test_reanswer_prompt():
    prompt = generate_reanswer_prompt("zh", "求 x", "数学")
    assert "求 x" in prompt
    assert "本题学科：数学" in prompt
    assert "<answer_text>" in prompt

    assert "请根据题目内容判断学科" in generate_reanswer_prompt("en", "Q")
