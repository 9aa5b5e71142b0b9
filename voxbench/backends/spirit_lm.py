"""
Spirit LM backend: expressive speech-text fusion model.
Stubbed: canned reply after a 400-800ms simulated delay.
"""

from __future__ import annotations

from voxbench.backends.base import CannedSpeechBackend


class SpiritLMBackend(CannedSpeechBackend):
    """Expressive model stand-in."""

    name = "spirit_lm"
    display_name = "Spirit LM"
    description = "Expressive"
    min_delay_ms = 400
    max_delay_ms = 800

    responses = {
        "en": "Spirit LM speaking! I specialize in expressive speech-text fusion, bringing emotion and nuance to our conversation.",
        "ta": "ஸ்பிரிட் எல்எம் பேசுகிறது! வெளிப்பாடு நிறைந்த பேச்சு-உரை இணைப்பில் நான் நிபுணத்துவம் பெற்றுள்ளேன், உணர்ச்சி மற்றும் நுணுக்கத்தை உங்கள் உரையாடலுக்கு கொண்டு வருகிறேன்.",
        "es": "¡Spirit LM hablando! Me especializo en la fusión expresiva de habla y texto, aportando emoción y matices a nuestra conversación.",
        "fr": "Spirit LM parle! Je me spécialise dans la fusion expressive parole-texte, apportant émotion et nuance à notre conversation.",
        "de": "Spirit LM spricht! Ich spezialisiere mich auf ausdrucksstarke Sprach-Text-Fusion und bringe Emotion und Nuancen in unser Gespräch.",
    }
