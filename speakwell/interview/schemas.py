"""
Interview categories, phases and state errors.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union


class InterviewCategory(str, Enum):
    """Kinds of mock interview a user can pick."""
    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    CODING = "coding"
    SYSTEM_DESIGN = "system-design"
    HR = "hr"
    MIXED = "mixed"


class InterviewPhase(str, Enum):
    """Where an interview is in its lifecycle."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class UnknownCategoryError(ValueError):
    """Raised when a category name is not one of InterviewCategory."""


class InterviewStateError(RuntimeError):
    """Raised when an interview operation is not allowed in the current state."""


@dataclass(frozen=True)
class CategoryConfig:
    """Display and prompt settings for one category."""
    label: str
    description: str
    focus: str


CATEGORY_CONFIGS: Dict[InterviewCategory, CategoryConfig] = {
    InterviewCategory.BEHAVIORAL: CategoryConfig(
        label="Behavioral",
        description="STAR-method questions on teamwork, leadership and conflict",
        focus=(
            "Focus on behavioral interview questions using the STAR method (Situation, Task, "
            "Action, Result). Ask about leadership, teamwork, conflict resolution, time "
            "management, and problem-solving experiences. Examples: \"Tell me about a time you "
            "had to deal with a difficult team member\", \"Describe a situation where you failed "
            "and what you learned.\""
        ),
    ),
    InterviewCategory.TECHNICAL: CategoryConfig(
        label="Technical",
        description="Computer science and software engineering concepts",
        focus=(
            "Focus on technical concept questions for software engineering roles. Ask about data "
            "structures, algorithms, system design principles, databases, networking, operating "
            "systems, OOP concepts, design patterns, and software architecture. Examples: "
            "\"Explain the difference between a stack and a queue\", \"What is the CAP theorem?\", "
            "\"How does garbage collection work?\""
        ),
    ),
    InterviewCategory.CODING: CategoryConfig(
        label="Coding",
        description="Programming problems with complexity review",
        focus=(
            "Focus on coding and programming questions. Present actual coding problems with clear "
            "input/output examples. Format code using markdown code blocks. Ask about arrays, "
            "strings, linked lists, trees, graphs, dynamic programming, sorting, and searching. "
            "After the user answers, evaluate their solution's time and space complexity. "
            "Example: \"Write a function to find the two numbers in an array that add up to a "
            "target sum. Input: nums = [2, 7, 11, 15], target = 9. Output: [0, 1]\""
        ),
    ),
    InterviewCategory.SYSTEM_DESIGN: CategoryConfig(
        label="System Design",
        description="Designing scalable distributed systems",
        focus=(
            "Focus on system design interview questions. Ask about designing scalable systems, "
            "microservices, load balancing, caching, databases, message queues, and distributed "
            "systems. Examples: \"Design a URL shortener like bit.ly\", \"How would you design a "
            "chat application like WhatsApp?\", \"Design a news feed system like Twitter.\""
        ),
    ),
    InterviewCategory.HR: CategoryConfig(
        label="HR",
        description="Career goals, motivation and culture fit",
        focus=(
            "Focus on HR and general interview questions. Ask about career goals, strengths and "
            "weaknesses, salary expectations, company culture fit, and motivation. Examples: "
            "\"Why do you want to work here?\", \"Where do you see yourself in 5 years?\", "
            "\"What is your greatest weakness?\""
        ),
    ),
    InterviewCategory.MIXED: CategoryConfig(
        label="Mixed",
        description="A bit of everything, like a multi-round loop",
        focus=(
            "Mix questions from all categories: behavioral, technical, coding, system design, "
            "and HR. Vary the difficulty and type to simulate a real multi-round interview process."
        ),
    ),
}


def parse_category(value: Union[str, InterviewCategory]) -> InterviewCategory:
    """
    Validate a category name.

    Raises:
        UnknownCategoryError: value does not name a known category
    """
    if isinstance(value, InterviewCategory):
        return value
    try:
        return InterviewCategory(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in InterviewCategory)
        raise UnknownCategoryError(f"Unknown interview category {value!r} (expected one of: {valid})")


def get_category_config(category: InterviewCategory) -> CategoryConfig:
    return CATEGORY_CONFIGS[category]
