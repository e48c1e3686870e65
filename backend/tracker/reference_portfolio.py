"""
Reference portfolio: rank a user's references for a career goal.

Everything here is pure. Callers turn JobReference rows into usage mappings:
    {"reference_id": ..., "stage": "offer", "job_title": "...", "industry": "..."}
and references into mappings with id, full_name, title, organization,
relationship, email, tags.
"""
import re

INTERVIEW_STAGES = ('phone_screen', 'interview', 'offer')
OFFER_STAGE = 'offer'

APPLICATION_WEIGHT = 2
OFFER_WEIGHT = 5
FULL_GOAL_MATCH = 5
TOKEN_MATCH = 1
MIN_TOKEN_LENGTH = 3


def _empty_stats():
    return {'applications': 0, 'interviews': 0, 'offers': 0, 'titles': [], 'industries': []}


def collect_reference_stats(usages):
    """Aggregate per-reference outcome counters from job usages."""
    stats = {}
    for usage in usages:
        ref_id = usage.get('reference_id')
        if ref_id is None:
            continue
        entry = stats.setdefault(str(ref_id), _empty_stats())
        stage = (usage.get('stage') or '').replace('-', '_')

        entry['applications'] += 1
        if stage in INTERVIEW_STAGES:
            entry['interviews'] += 1
        if stage == OFFER_STAGE:
            entry['offers'] += 1

        title = (usage.get('job_title') or '').lower()
        if title and title not in entry['titles']:
            entry['titles'].append(title)
        industry = (usage.get('industry') or '').lower()
        if industry and industry not in entry['industries']:
            entry['industries'].append(industry)
    return stats


def success_rate(applications, offers):
    return offers / applications if applications else 0


def reference_impact(stats):
    """Flatten collected stats into [{reference_id, applications, interviews, offers, success_rate}]."""
    return [
        {
            'reference_id': ref_id,
            'applications': entry['applications'],
            'interviews': entry['interviews'],
            'offers': entry['offers'],
            'success_rate': success_rate(entry['applications'], entry['offers']),
        }
        for ref_id, entry in stats.items()
    ]


def _summary(applications, offers, titles):
    if not applications:
        return "Not yet used in tracked applications."
    apps_label = f"{applications} application{'' if applications == 1 else 's'}"
    offers_label = f"{offers} offer{'' if offers == 1 else 's'}" if offers else "no offers yet"
    roles = ", ".join(titles[:3]) or "various positions"
    return f"Used in {apps_label} with {offers_label} for roles like {roles}."


def score_reference(goal, reference, ref_stats):
    normalized_goal = goal.lower().strip()
    tokens = [t for t in re.split(r'\s+', normalized_goal) if len(t) >= MIN_TOKEN_LENGTH]

    score = ref_stats['applications'] * APPLICATION_WEIGHT + ref_stats['offers'] * OFFER_WEIGHT

    haystack = [(tag or '').lower() for tag in (reference.get('tags') or [])]
    haystack += [
        (reference.get('relationship') or '').lower(),
        (reference.get('title') or '').lower(),
        (reference.get('organization') or '').lower(),
    ]
    haystack += ref_stats['titles']

    for text in haystack:
        if not text:
            continue
        if normalized_goal in text:
            score += FULL_GOAL_MATCH
        score += TOKEN_MATCH * sum(1 for tok in tokens if tok in text)
    return score


def score_references(goal, references, stats, limit=5):
    """
    Rank references by how well they support ``goal``.

    Score = applications*2 + offers*5, plus 5 per haystack string containing
    the whole goal and 1 per goal token (3+ chars) found in a haystack string.
    References that score 0 and were never used are left out. Ties keep the
    input order.
    """
    scored = []
    for reference in references:
        ref_id = str(reference.get('id'))
        ref_stats = stats.get(ref_id) or _empty_stats()
        applications = ref_stats['applications']
        offers = ref_stats['offers']

        scored.append({
            'reference_id': ref_id,
            'full_name': reference.get('full_name'),
            'title': reference.get('title'),
            'organization': reference.get('organization'),
            'relationship': reference.get('relationship'),
            'email': reference.get('email'),
            'tags': list(reference.get('tags') or []),
            'stats': {
                'applications': applications,
                'offers': offers,
                'success_rate': success_rate(applications, offers),
            },
            'score': score_reference(goal, reference, ref_stats),
            'summary': _summary(applications, offers, ref_stats['titles']),
        })

    scored.sort(key=lambda r: r['score'], reverse=True)
    kept = [r for r in scored if r['score'] > 0 or r['stats']['applications'] > 0]
    return kept[:limit]


APPRECIATION_TEMPLATES = {
    'thank_you': (
        "Hi {name},\n\n"
        "I just wanted to say thank you again for supporting my application for the {role} role at {company}. "
        "I really appreciate you taking the time to speak on my behalf.\n\n"
        "I'll keep you posted on how things go, and I'm grateful for your continued support.\n\n"
        "Best regards,\n[Your Name]"
    ),
    'update': (
        "Hi {name},\n\n"
        "I wanted to send you a quick update regarding my application for the {role} role at {company}. "
        "[Share any updates here.]\n\n"
        "Thank you again for being willing to act as a reference. Your support means a lot.\n\n"
        "Best,\n[Your Name]"
    ),
    'keep_in_touch': (
        "Hi {name},\n\n"
        "I hope you're doing well. I just wanted to keep in touch and let you know "
        "I really appreciate your support in my career journey.\n\n"
        "Best,\n[Your Name]"
    ),
}


def appreciation_message(reference, job, kind):
    """Render a thank-you, update or keep-in-touch note; unknown kinds fall back to keep-in-touch."""
    reference = reference or {}
    job = job or {}
    template = APPRECIATION_TEMPLATES.get(kind, APPRECIATION_TEMPLATES['keep_in_touch'])
    return template.format(
        name=reference.get('full_name') or "your reference",
        role=job.get('title') or "the role",
        company=job.get('company_name') or "the company",
    )
