"""Message bodies sent to classes and teachers."""

from html import escape
from typing import Optional


def winner_notification(
    class_name: str,
    drawing_name: str,
    prize: str,
    teacher_name: Optional[str] = None,
) -> tuple[str, str, str]:
    """Return ``(subject, text, html)`` for a drawing winner."""

    greeting = teacher_name or "Teacher"
    subject = f"Congratulations! Your class {class_name} won the {drawing_name}!"
    text = (
        f"Dear {greeting},\n\n"
        f"Congratulations! Your class, {class_name}, has won the {drawing_name} "
        f"for the prize: {prize}.\n\n"
        "More details to follow.\n\n"
        "Best regards,\nRRLC Team"
    )
    name, drawing, prize_html = escape(class_name), escape(drawing_name), escape(prize)
    html = (
        f"<p>Dear {escape(greeting)},</p>"
        f"<p>Congratulations! Your class, <strong>{name}</strong>, has won "
        f"the <strong>{drawing}</strong> for the prize: "
        f"<strong>{prize_html}</strong>.</p>"
        "<p>More details to follow.</p>"
        "<p>Best regards,<br>RRLC Team</p>"
    )
    return subject, text, html
