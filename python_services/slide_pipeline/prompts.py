"""Prompt templates for outline, slide content, critique, refinement and feedback.

Templates are rendered by ``ChatPromptTemplate.from_template``; literal JSON
braces are doubled.
"""

from __future__ import annotations

DEFAULT_TEMPLATE_PREFIX = "Create a presentation about"


OUTLINE_PROMPT_EN = (
    "You are a professional presentation expert. Create a compelling outline for a presentation on \"{topic}\".\n\n"
    "Template guidance: {template_prefix}\n\n"
    "Generate 5-7 slide titles that:\n"
    "- Are concise and engaging (max 6 words each)\n"
    "- Follow a logical flow from introduction to conclusion\n"
    "- Are suitable for a professional business audience\n"
    "- Cover key aspects comprehensively\n\n"
    "Include: Introduction, 2-3 core concept slides, applications/benefits, challenges/considerations, and conclusion.\n\n"
    "IMPORTANT: Respond ONLY with a valid JSON array. No additional text or explanations.\n\n"
    "Example: [\"Introduction to Topic\", \"Core Principles\", \"Key Applications\", \"Current Challenges\", "
    "\"Future Outlook\", \"Conclusion\"]"
)

OUTLINE_PROMPT_ZH = (
    "你是一位专业的演示文稿专家。请为主题\"{topic}\"设计一份有吸引力的大纲。\n\n"
    "模板指引：{template_prefix}\n\n"
    "生成5到7个幻灯片标题，要求：\n"
    "- 简洁有力（每个标题不超过6个词）\n"
    "- 从引言到结论逻辑连贯\n"
    "- 适合专业商务听众\n"
    "- 全面覆盖主题的关键方面\n\n"
    "应包含：引言、2到3个核心概念、应用与价值、挑战与考量、结论。\n\n"
    "重要：只返回一个合法的JSON数组，不要附加任何文字或解释。\n\n"
    "示例：[\"主题概述\", \"核心原理\", \"关键应用\", \"当前挑战\", \"未来展望\", \"总结\"]"
)


SLIDE_CONTENT_PROMPT_EN = (
    "Generate professional presentation slide content.\n"
    "Topic: {topic}\n"
    "Slide Title: {slide_title}\n\n"
    "Create a well-structured slide with:\n"
    "- A clear, engaging title (max 8 words)\n"
    "- 3-5 concise bullet points (each 10-15 words max)\n"
    "- Professional, informative content suitable for business presentation\n\n"
    "IMPORTANT: Respond ONLY with valid JSON. No additional text, explanations, or formatting.\n\n"
    "Format as JSON with \"title\" and \"content\" keys. Content should be bullet points separated by newlines, "
    "each starting with \"-\".\n\n"
    "Example:\n"
    "{{\n"
    "  \"title\": \"Key Benefits of Technology\",\n"
    "  \"content\": \"- Increases productivity and efficiency across teams\\n- Reduces operational costs by 30-40%\\n"
    "- Improves customer satisfaction and engagement\\n- Enables data-driven decision making\"\n"
    "}}"
)

SLIDE_CONTENT_PROMPT_ZH = (
    "为专业演示文稿生成幻灯片内容。\n"
    "主题：{topic}\n"
    "幻灯片标题：{slide_title}\n\n"
    "幻灯片要求：\n"
    "- 清晰有吸引力的标题（不超过8个词）\n"
    "- 3到5个简洁的要点（每个不超过15个词）\n"
    "- 适合商务演示的专业内容\n\n"
    "重要：只返回合法的JSON，不要附加任何文字、解释或格式。\n\n"
    "JSON包含\"title\"和\"content\"两个键。content为以换行分隔的要点，每行以\"-\"开头。\n\n"
    "示例：\n"
    "{{\n"
    "  \"title\": \"技术的主要优势\",\n"
    "  \"content\": \"- 提升团队效率\\n- 降低运营成本\\n- 改善客户体验\\n- 支持数据驱动决策\"\n"
    "}}"
)


CRITIQUE_PROMPT = (
    "You are a presentation content critic. Review the following slide content.\n"
    "Slide Title: {title}\n"
    "Slide Content:\n"
    "{content}\n\n"
    "Is the content clear, concise, and relevant to the title? Does it follow the requested format?\n\n"
    "IMPORTANT: Respond ONLY with valid JSON. No additional text or explanations.\n\n"
    "If it's good, respond with: {{ \"revision_needed\": false, \"critique\": \"No issues found.\" }}\n"
    "If it needs improvement, respond with: {{ \"revision_needed\": true, \"critique\": \"[Your specific feedback here]\" }}"
)


REFINE_PROMPT = (
    "Refine the presentation slide content based on the provided critique.\n"
    "Topic: {topic}\n"
    "Original Title: {title}\n"
    "Original Content:\n"
    "{content}\n\n"
    "Critique: {critique}\n\n"
    "IMPORTANT: Respond ONLY with valid JSON. No additional text or explanations.\n\n"
    "Generate a new, improved version of the slide. Respond with a JSON object with \"title\" and \"content\" keys. "
    "Content should be bullet points separated by newlines, each starting with \"-\"."
)


FEEDBACK_PROMPT = (
    "You are a professional presentation expert. Apply the following human feedback to improve a slide.\n\n"
    "Current Slide:\n"
    "Title: {title}\n"
    "Content: {content}\n\n"
    "Human Feedback: \"{feedback}\"\n\n"
    "Template Context: {template_context}\n"
    "Slide Number: {slide_number}\n\n"
    "Instructions:\n"
    "1. Analyze the feedback and understand what improvements are requested\n"
    "2. Apply the feedback while maintaining professional presentation standards\n"
    "3. Keep the core message but enhance based on the feedback\n"
    "4. Ensure the content remains concise and presentation-appropriate\n"
    "5. If feedback asks for data/statistics, include realistic placeholder data points\n"
    "6. If feedback asks for examples, include relevant industry examples\n"
    "7. If feedback asks for simplification, reduce technical jargon\n"
    "8. If feedback asks for more detail, add relevant bullet points\n\n"
    "IMPORTANT: Respond ONLY with valid JSON. No additional text or explanations.\n\n"
    "Format as JSON with \"title\" and \"content\" keys. Content should be bullet points separated by newlines, "
    "each starting with \"-\"."
)


def outline_prompt(language: str) -> str:
    return OUTLINE_PROMPT_ZH if language == "zh" else OUTLINE_PROMPT_EN


def slide_content_prompt(language: str) -> str:
    return SLIDE_CONTENT_PROMPT_ZH if language == "zh" else SLIDE_CONTENT_PROMPT_EN
