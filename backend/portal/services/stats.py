from __future__ import annotations
from collections import Counter
from typing import Iterable, Sequence

from portal.competitions import COMPETITIONS
from portal.schemas.stats import CompetitionCount, ReferralCount, SubmissionStats
from portal.schemas.submission import Submission

REF_ALL = "all"
REF_DIRECT = "direct"
DIRECT_LABEL = "Direct"


def is_direct(s: Submission) -> bool:
    return not (s.ref_source or "").strip()


def filter_by_referral(submissions: Iterable[Submission], ref: str | None) -> list[Submission]:
    """
    ref:
      - "all" (or empty): everything
      - "direct", any case (the breakdown labels these "Direct"): entries without a referral source
      - anything else: entries whose ref_source equals it exactly
    """
    ref = (ref or REF_ALL).strip()
    if ref.lower() == REF_ALL:
        return list(submissions)
    if ref.lower() == REF_DIRECT:
        return [s for s in submissions if is_direct(s)]
    return [s for s in submissions if s.ref_source == ref]


def filter_by_competition(submissions: Iterable[Submission], competition_id: str | None) -> list[Submission]:
    if not competition_id:
        return list(submissions)
    return [s for s in submissions if s.competition_id == competition_id]


def referral_breakdown(submissions: Iterable[Submission]) -> list[ReferralCount]:
    counts = Counter(DIRECT_LABEL if is_direct(s) else s.ref_source for s in submissions)
    return [ReferralCount(ref_source=k, count=v) for k, v in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


def compute_stats(submissions: Sequence[Submission], everything: Sequence[Submission] | None = None) -> SubmissionStats:
    """Counts over `submissions`; the referral list covers `everything` so a filtered view still lists every source."""
    per = Counter(s.competition_id for s in submissions)
    return SubmissionStats(
        total_submissions=len(submissions),
        per_competition=[CompetitionCount(id=c.id, name=c.name, count=per.get(c.id, 0)) for c in COMPETITIONS.values()],
        referrals=referral_breakdown(submissions if everything is None else everything),
    )
