"""
Message Splitter - разбиение длинных сообщений для Telegram

Telegram лимит: 4096 символов на сообщение.
Разбивает текст по параграфам чтобы не резать посередине предложения.
"""

from typing import List

MAX_MESSAGE_LENGTH = 4000  # Оставляем запас для форматирования


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Разбить текст на части не длиннее limit

    Args:
        text: Текст для отправки
        limit: Максимальная длина части

    Returns:
        Список частей (один элемент, если текст короткий)
    """
    if len(text) <= limit:
        return [text]

    parts = []
    current_part = ""

    def flush():
        nonlocal current_part
        if current_part.strip():
            parts.append(current_part.strip())
        current_part = ""

    # Сначала пробуем разбить по двойным переносам строк (параграфы)
    for paragraph in text.split('\n\n'):
        if len(current_part) + len(paragraph) + 2 <= limit:
            current_part += paragraph + '\n\n'
            continue

        flush()
        if len(paragraph) <= limit:
            current_part = paragraph + '\n\n'
            continue

        # Параграф сам по себе слишком длинный - режем по строкам
        for line in paragraph.split('\n'):
            if len(current_part) + len(line) + 1 <= limit:
                current_part += line + '\n'
                continue

            flush()
            # Строка длиннее лимита - режем жёстко
            while len(line) > limit:
                parts.append(line[:limit])
                line = line[limit:]
            current_part = line + '\n'

        current_part += '\n'

    flush()
    return parts
