"""
Moshi backend: full-duplex conversational speech model.
Stubbed: canned reply after a 300-500ms simulated delay.
"""

from __future__ import annotations

from voxbench.backends.base import CannedSpeechBackend


class MoshiBackend(CannedSpeechBackend):
    """Full-duplex model stand-in."""

    name = "moshi"
    display_name = "Moshi"
    description = "Full-duplex"
    min_delay_ms = 300
    max_delay_ms = 500

    responses = {
        "en": "Hello! I heard you speaking. This is Moshi responding with full-duplex conversation capability.",
        "ta": "வணக்கம்! நீங்கள் பேசுவதை நான் கேட்டேன். இது மோஷி முழு-டுப்ளெக்ஸ் உரையாடல் திறனுடன் பதிலளிக்கிறது.",
        "es": "¡Hola! Te escuché hablar. Este es Moshi respondiendo con capacidad de conversación full-duplex.",
        "fr": "Bonjour! Je vous ai entendu parler. Voici Moshi répondant avec une capacité de conversation full-duplex.",
        "de": "Hallo! Ich habe Sie sprechen hören. Das ist Moshi, der mit Full-Duplex-Gesprächsfähigkeit antwortet.",
    }
