import re

COMPANY_CONTEXTS = {
    "tcs": {
        "label": "TCS",
        "interview_style": "process-oriented and delivery-focused",
        "domains": ["enterprise modernization", "legacy integration", "banking systems"],
        "priorities": ["client communication", "stability", "maintainability"],
    },
    "infosys": {
        "label": "Infosys",
        "interview_style": "structured and framework-driven",
        "domains": ["digital transformation", "cloud migration", "consulting delivery"],
        "priorities": ["problem decomposition", "documentation", "stakeholder alignment"],
    },
    "wipro": {
        "label": "Wipro",
        "interview_style": "execution-focused with quality emphasis",
        "domains": ["IT services", "automation", "support transformation"],
        "priorities": ["quality", "process compliance", "incident response"],
    },
    "accenture": {
        "label": "Accenture",
        "interview_style": "consulting-led and outcome-driven",
        "domains": ["enterprise platforms", "cloud-native programs", "cross-functional transformation"],
        "priorities": ["business impact", "communication", "decision-making"],
    },
    "cognizant": {
        "label": "Cognizant",
        "interview_style": "client-facing and delivery-focused",
        "domains": ["healthcare and finance engineering", "platform delivery", "data-enabled products"],
        "priorities": ["customer focus", "ownership", "reliability"],
    },
    "deloitte": {
        "label": "Deloitte",
        "interview_style": "case-oriented and analytical",
        "domains": ["advisory technology", "risk systems", "enterprise modernization"],
        "priorities": ["structured thinking", "risk awareness", "clarity"],
    },
    "capgemini": {
        "label": "Capgemini",
        "interview_style": "balanced between technical depth and collaboration",
        "domains": ["cloud services", "application modernization", "managed services"],
        "priorities": ["scalability", "team collaboration", "code quality"],
    },
    "amazon": {
        "label": "Amazon",
        "interview_style": "high bar with ownership and trade-off focus",
        "domains": ["distributed systems", "large-scale services", "customer-facing products"],
        "priorities": ["ownership", "customer obsession", "metrics"],
    },
    "microsoft": {
        "label": "Microsoft",
        "interview_style": "design-heavy and engineering-rigor oriented",
        "domains": ["platform engineering", "developer tools", "cloud systems"],
        "priorities": ["design clarity", "testing", "collaboration"],
    },
    "google": {
        "label": "Google",
        "interview_style": "problem-solving and system-design intensive",
        "domains": ["search-scale systems", "data-intensive services", "reliability engineering"],
        "priorities": ["analytical depth", "scalability", "simplicity"],
    },
}

DEFAULT_COMPANY_CONTEXT = {
    "label": "General",
    "interview_style": "practical and scenario-focused",
    "domains": ["product engineering"],
    "priorities": ["problem solving", "clarity", "execution"],
}

ROLE_COMPETENCIES = {
    "software engineer": ["data structures", "debugging", "API design", "code quality", "testing"],
    "frontend developer": ["react architecture", "state management", "performance optimization", "accessibility", "responsive design"],
    "backend developer": ["API design", "database modeling", "caching", "security", "scalability"],
    "full stack developer": ["end-to-end architecture", "API contracts", "frontend-backend integration", "deployment", "debugging"],
    "data scientist": ["feature engineering", "model validation", "experiment design", "data storytelling", "business alignment"],
    "ai/ml engineer": ["model serving", "ML pipelines", "evaluation metrics", "prompt design", "inference optimization"],
    "devops engineer": ["CI/CD", "observability", "incident response", "infrastructure as code", "reliability"],
    "quality assurance": ["test strategy", "automation", "defect triage", "regression planning", "risk-based testing"],
    "systems architect": ["system design", "trade-off analysis", "scalability planning", "resilience", "governance"],
}

# Checked in order; first substring hit wins.
_ROLE_ALIASES = [
    ("frontend", "frontend developer"),
    ("backend", "backend developer"),
    ("full stack", "full stack developer"),
    ("devops", "devops engineer"),
    ("architect", "systems architect"),
    ("data scientist", "data scientist"),
    ("qa", "quality assurance"),
    ("ai", "ai/ml engineer"),
    ("ml", "ai/ml engineer"),
]


def normalize_key(value: str | None) -> str:
    return str(value or "").strip().lower()


def get_company_context(company: str | None) -> dict:
    return COMPANY_CONTEXTS.get(normalize_key(company), DEFAULT_COMPANY_CONTEXT)


def get_role_competencies(role: str | None) -> list[str]:
    key = normalize_key(role)
    if key in ROLE_COMPETENCIES:
        return ROLE_COMPETENCIES[key]
    tokens = set(re.split(r"[^a-z0-9]+", key))
    for needle, target in _ROLE_ALIASES:
        # two-letter aliases only match whole words ("ml" must not hit "html")
        matched = needle in tokens if len(needle) <= 2 else needle in key
        if matched:
            return ROLE_COMPETENCIES[target]
    return ROLE_COMPETENCIES["software engineer"]


def list_companies() -> list[dict[str, str]]:
    items = [
        {
            "id": key,
            "label": str(value.get("label") or key.title()),
            "interview_style": str(value.get("interview_style") or ""),
        }
        for key, value in COMPANY_CONTEXTS.items()
    ]
    items.sort(key=lambda item: item["label"].lower())
    return items


def list_roles() -> list[str]:
    return sorted(ROLE_COMPETENCIES.keys())
