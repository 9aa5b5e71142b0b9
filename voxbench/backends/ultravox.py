"""
Ultravox backend: speech-extended language model.
Stubbed: canned reply after a 500-800ms simulated delay.
"""

from __future__ import annotations

from voxbench.backends.base import CannedSpeechBackend


class UltravoxBackend(CannedSpeechBackend):
    """Speech LLM stand-in."""

    name = "ultravox"
    display_name = "Ultravox"
    description = "Speech LLM"
    min_delay_ms = 500
    max_delay_ms = 800

    responses = {
        "en": "Ultravox here! As a speech-extended language model, I can understand and respond to your speech with enhanced linguistic capabilities.",
        "ta": "அல்ட்ராவோக்ஸ் இங்கே! ஒரு பேச்சு-விரிவாக்கப்பட்ட மொழி மாதிரியாக, மேம்பட்ட மொழியியல் திறன்களுடன் உங்கள் பேச்சை புரிந்துகொண்டு பதிலளிக்க முடியும்.",
        "es": "¡Ultravox aquí! Como modelo de lenguaje extendido por voz, puedo entender y responder a tu habla con capacidades lingüísticas mejoradas.",
        "fr": "Ultravox ici! En tant que modèle de langage étendu par la parole, je peux comprendre et répondre à votre parole avec des capacités linguistiques améliorées.",
        "de": "Ultravox hier! Als spracherweiterte Sprachmodell kann ich Ihre Sprache verstehen und mit erweiterten sprachlichen Fähigkeiten antworten.",
    }
