"""
Quiz Generation Pipeline
generation/

Steps:
1. Prompt Builder: render the JSON-only instruction around the source text
2. Generation Client: one awaited call to the text-completion provider
3. Normalizer    : recover a typed quiz payload from whatever came back

Persistence of the normalized payload is handled by services.quiz_service.
"""
