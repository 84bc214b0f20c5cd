from __future__ import annotations

from pathlib import Path

from langchain_core.prompts import PromptTemplate


TRANSCRIPT_PLACEHOLDER = "{transcript}"

FINAL_ROUND_PROMPT = PromptTemplate.from_template(
    "Voici un extrait de sous-titres correspondant à la manche de fin d'une émission de jeu TV de quiz, "
    "à peu près au moment où la présentation des cadeaux des candidats est en cours. "
    "Cette dernière manche oppose deux joueurs qui doivent répondre le plus vite possible à de longues "
    "questions posées par le présentateur, autour d'un thème spécifié. "
    "Tant qu'une réponse correcte n'est pas donnée, la question continue. "
    "J'aimerais que tu extrais, pour chaque question :\n"
    "- le libellé entier de la question (si un candidat répond avant la fin de la question, il faut "
    "compléter la question avec sa suite, énoncée par le présentateur)\n"
    "- le thème de la question\n"
    "- la réponse.\n"
    "\n"
    "`{transcript}`"
)


def load_prompt_template(template_path: Path) -> str:
    return template_path.read_text(encoding="utf-8")


def compose_extraction_prompt(transcript: str, template: str | None = None) -> str:
    if template is None:
        return FINAL_ROUND_PROMPT.format(transcript=transcript)
    if TRANSCRIPT_PLACEHOLDER in template:
        return template.replace(TRANSCRIPT_PLACEHOLDER, transcript)
    return f"{template.rstrip()}\n\n`{transcript}`"
