"""Prompt templates shared by every provider.

Templates use `{{name}}` placeholders; unknown names render as empty text.
Every template asks for tagged sections so both providers can share one
reply parser.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional, Sequence

from errorbook.config import DEFAULT_DIFFICULTY, SUBJECTS

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

_SUBJECT_LIST = ", ".join(f'"{s}"' for s in SUBJECTS)

DEFAULT_ANALYZE_TEMPLATE = f"""【角色与核心任务 (ROLE AND CORE TASK)】
你是一位经验丰富的跨学科考试分析专家。请准确分析用户提供的考试题目图片，理解所有文本、图表和隐含约束，并给出完整、结构化的解答。

{{{{language_instruction}}}}

{{{{grade_hint}}}}

【核心输出要求 (OUTPUT REQUIREMENTS)】
输出必须严格使用以下标签格式，严禁使用 JSON 或 Markdown 代码块，不要对 LaTeX 反斜杠做二次转义。

<subject>
学科，必须是以下之一：{_SUBJECT_LIST}。
</subject>

<knowledge_points>
知识点，使用逗号分隔，最多 5 个。
</knowledge_points>

<requires_image>
题目是否必须看图才能解答（几何图形、函数图像、实验装置、电路图等），填写 true 或 false。
</requires_image>

<question_text>
题目完整文本，使用 Markdown，公式使用 LaTeX（行内 $...$，块级 $$...$$）。
</question_text>

<answer_text>
正确答案，使用 Markdown 和 LaTeX。
</answer_text>

<analysis>
详细的步骤解析，直接使用标准 LaTeX 符号（如 $\\frac{{1}}{{2}}$）。
</analysis>

【知识点标签列表 (KNOWLEDGE POINT LIST)】
{{{{knowledge_points_list}}}}

【关键约束 (CRITICAL RULES)】
1. 只输出上述 6 个标签，不要输出开场白或结束语。
2. 如果包含子问题，请在 question_text 中完整列出。
3. 严禁包含图片链接或 Markdown 图片语法。

{{{{provider_hints}}}}"""

DEFAULT_SIMILAR_TEMPLATE = """你是一位资深的 K12 题目生成专家。请根据以下原题和知识点，举一反三生成一道新题，保持核心考点不变、改变题目表现形式，答案唯一且可验证。

原题: "{{original_question}}"
{{language_instruction}}
DIFFICULTY LEVEL: {{difficulty_level}}
{{difficulty_instruction}}
Knowledge Points: {{knowledge_points}}

输出必须严格使用以下标签格式，严禁使用 JSON 或 Markdown 代码块：

<question_text>
新题目文本（如果是选择题请包含选项）。
</question_text>

<answer_text>
新题目的正确答案。
</answer_text>

<analysis>
新题目的详细解析，直接使用标准 LaTeX 符号，不要转义反斜杠。
</analysis>

<knowledge_points>
新题目考查的知识点，使用逗号分隔。
</knowledge_points>

<question_image_required>
新题目是否需要配图才能作答，填写 true 或 false。
</question_image_required>

<question_image_prompt>
如果需要配图，用英文描述图片内容；否则留空。
</question_image_prompt>

<answer_image_required>
解析是否需要配图，填写 true 或 false。
</answer_image_required>

<answer_image_prompt>
如果需要配图，用英文描述图片内容；否则留空。
</answer_image_prompt>

{{provider_hints}}"""

DEFAULT_REANSWER_TEMPLATE = """【角色与核心任务 (ROLE AND CORE TASK)】
你是一位经验丰富的专业教师。用户已经提供了一道校正后的题目，请给出正确答案和详细解析。

{{language_instruction}}

【题目内容 (QUESTION)】
{{question_text}}

【学科提示 (SUBJECT HINT)】
{{subject_hint}}

输出必须严格使用以下标签格式，严禁使用 JSON 或 Markdown 代码块：

<answer_text>
正确答案，使用 Markdown 和 LaTeX。
</answer_text>

<analysis>
详细的步骤解析，清晰完整，适合学生理解。
</analysis>

<knowledge_points>
知识点，使用逗号分隔。
</knowledge_points>

不要修改或重复题目内容，只提供答案和解析。

{{provider_hints}}"""

DIFFICULTY_INSTRUCTIONS = {
    "easy": "Make the new question EASIER than the original. Use simpler numbers and more direct concepts.",
    "medium": "Keep the difficulty SIMILAR to the original question.",
    "hard": "Make the new question HARDER than the original. Combine multiple concepts or use more complex numbers.",
    "harder": "Make the new question MUCH HARDER (Challenge Level). Require deeper understanding and multi-step reasoning.",
}

_GRADE_NAMES = {
    7: "初一",
    8: "初二",
    9: "初三",
    10: "高一",
    11: "高二",
    12: "高三",
}


def replace_variables(template: str, variables: Mapping[str, str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: variables.get(m.group(1)) or "", template)


def _analyze_language_instruction(language: str) -> str:
    if language == "en":
        return "Please ensure all text fields are in English."
    return (
        "IMPORTANT: Use Simplified Chinese for the analysis. Keep the question "
        "and answer in the same language as the original question; if it is in "
        "English, keep question and answer in English but write the analysis in "
        "Simplified Chinese."
    )


def _knowledge_tags_section(knowledge_tags: Optional[Sequence[str]]) -> str:
    if not knowledge_tags:
        return "（无可用标签，请根据题目自由标注）"
    tags = ", ".join(f'"{t}"' for t in knowledge_tags)
    return f"请优先从以下标签中选择精确匹配的标签：\n{tags}"


def generate_analyze_prompt(
    language: str = "zh",
    grade: Optional[int] = None,
    subject: Optional[str] = None,
    *,
    custom_template: str = "",
    knowledge_tags: Optional[Sequence[str]] = None,
    provider_hints: str = "",
) -> str:
    hints = []
    if grade in _GRADE_NAMES:
        hints.append(f"学生年级：{_GRADE_NAMES[grade]}")
    if subject:
        hints.append(f"本题学科：{subject}")

    return replace_variables(
        custom_template or DEFAULT_ANALYZE_TEMPLATE,
        {
            "language_instruction": _analyze_language_instruction(language),
            "grade_hint": "\n".join(hints),
            "knowledge_points_list": _knowledge_tags_section(knowledge_tags),
            "provider_hints": provider_hints,
        },
    ).strip()


def generate_similar_question_prompt(
    language: str,
    original_question: str,
    knowledge_points: Sequence[str],
    difficulty: Optional[str] = DEFAULT_DIFFICULTY,
    *,
    custom_template: str = "",
    provider_hints: str = "",
) -> str:
    difficulty = difficulty or DEFAULT_DIFFICULTY
    if language == "en":
        lang = "Please ensure the generated question is in English."
    else:
        lang = (
            "IMPORTANT: Follow the original question's language. If it is in "
            "English, the new question and answer MUST be in English but the "
            "analysis MUST be in Simplified Chinese. If it is in Chinese, "
            "everything MUST be in Simplified Chinese."
        )

    return replace_variables(
        custom_template or DEFAULT_SIMILAR_TEMPLATE,
        {
            "difficulty_level": difficulty.upper(),
            "difficulty_instruction": DIFFICULTY_INSTRUCTIONS.get(
                difficulty, DIFFICULTY_INSTRUCTIONS[DEFAULT_DIFFICULTY]
            ),
            "language_instruction": lang,
            # escaped so the question can't close the surrounding quotes
            "original_question": original_question.replace('"', '\\"').replace(
                "\n", "\\n"
            ),
            "knowledge_points": ", ".join(knowledge_points),
            "provider_hints": provider_hints,
        },
    ).strip()


def generate_reanswer_prompt(
    language: str,
    question_text: str,
    subject: Optional[str] = None,
    *,
    custom_template: str = "",
    provider_hints: str = "",
) -> str:
    if language == "en":
        lang = "Please ensure all text fields are in English."
    else:
        lang = "IMPORTANT: 解析必须使用简体中文。如果题目是英文，答案保持英文，但解析用中文。"

    return replace_variables(
        custom_template or DEFAULT_REANSWER_TEMPLATE,
        {
            "language_instruction": lang,
            "question_text": question_text,
            "subject_hint": f"本题学科：{subject}" if subject else "请根据题目内容判断学科。",
            "provider_hints": provider_hints,
        },
    ).strip()
