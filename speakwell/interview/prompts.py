"""
Interview prompt templates and request payloads.

This module contains the prompt templates used when talking to a chat model
directly, keeping them separate from the streaming and state logic.
"""

from typing import Any, Dict, Optional, Sequence

from .models import ChatMessage
from .schemas import InterviewCategory, get_category_config


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def system_prompt(category: InterviewCategory) -> str:
        """Interviewer persona plus the focus instructions for a category."""
        focus = get_category_config(category).focus
        return f"""
You are an expert tech interviewer conducting a realistic mock interview. Your job is to help candidates prepare for real tech interviews.

INTERVIEW STYLE:
- Ask ONE question at a time, just like a real interviewer
- Wait for the candidate's answer before asking the next question
- After each answer, provide brief constructive feedback (what was good, what could improve)
- Then ask a follow-up or new question
- Progressively increase difficulty
- Be professional but encouraging

CATEGORY FOCUS:
{focus}

FORMATTING:
- Use markdown for code blocks with proper syntax highlighting (e.g. ```python)
- Bold key concepts and important terms
- Use numbered lists for multi-step explanations
- Keep feedback concise but actionable

EVALUATION:
- When evaluating coding answers, consider correctness, efficiency, edge cases, and code quality
- For behavioral answers, check for STAR method usage and specificity
- For system design, evaluate scalability, trade-offs, and completeness
- Provide a brief score hint (Strong/Good/Needs Improvement) after each answer

START: Begin by introducing yourself as the interviewer, mention the interview category, and ask your first question. Keep it natural and conversational.
        """.strip()

    @staticmethod
    def verdict_request() -> str:
        """Closing instruction asking for the final evaluation."""
        return """
The interview is now over. Do not ask any more questions.

Give your final verdict on the whole interview:
1. Start with a single line: "Verdict: Selected" or "Verdict: Not Selected"
2. Summarize the candidate's key strengths
3. List the most important areas to improve
4. Give an overall rating out of 10 with one sentence of justification

Use markdown headings and keep it concise.
        """.strip()


class ChatPayloadBuilder:
    """
    Builds request bodies for the chat service.

    Without a model the endpoint is treated as a relay that owns the system
    prompt and receives the category. With a model the body is a standard
    streaming chat-completions request carrying the prompts itself.
    """

    def __init__(self, model: Optional[str] = None):
        self.model = model

    @property
    def direct(self) -> bool:
        return bool(self.model)

    def build(self,
              messages: Sequence[ChatMessage],
              category: InterviewCategory,
              verdict: bool = False) -> Dict[str, Any]:
        history = [m.to_dict() for m in messages]

        if not self.direct:
            payload: Dict[str, Any] = {"messages": history, "category": category.value}
            if verdict:
                payload["mode"] = "verdict"
            return payload

        chat = [{"role": "system", "content": InterviewPrompts.system_prompt(category)}] + history
        if verdict:
            chat.append({"role": "user", "content": InterviewPrompts.verdict_request()})
        return {"model": self.model, "messages": chat, "stream": True}
