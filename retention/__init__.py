"""
Retention: SM-2 spaced-repetition scheduling for flashcards.
"""
