# training_core/recommend.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from .tiers import encouragement

MODULES: List[Dict[str, Any]] = [
    {
        "id": "phishing-awareness",
        "title": "Phishing Awareness",
        "description": "Learn to identify and avoid phishing attacks through interactive email simulations",
        "difficulty": "Beginner",
        "duration_min": 30,
        "skills": ["Email Security", "Social Engineering", "Risk Assessment"],
    },
    {
        "id": "password-security",
        "title": "Password Security",
        "description": "Master password best practices and authentication security",
        "difficulty": "Beginner",
        "duration_min": 25,
        "skills": ["Authentication", "Cryptography", "Security Policies"],
    },
    {
        "id": "threat-hunting",
        "title": "Threat Hunting",
        "description": "Analyze security logs to find attacks hiding in normal activity",
        "difficulty": "Intermediate",
        "duration_min": 45,
        "skills": ["Log Analysis", "Pattern Recognition", "Incident Response"],
    },
    {
        "id": "network-security",
        "title": "Network Security",
        "description": "Understand network vulnerabilities, firewall rules and secure protocols",
        "difficulty": "Intermediate",
        "duration_min": 40,
        "skills": ["Network Analysis", "Firewall Configuration", "Port Scanning"],
    },
]

# completing a module points the learner at the next one; network is the last
PROGRESSION: Dict[str, Optional[str]] = {
    "phishing-awareness": "password-security",
    "password-security": "threat-hunting",
    "threat-hunting": "network-security",
    "network-security": None,
}


def get_module(module_id: str) -> Optional[Dict[str, Any]]:
    return next((m for m in MODULES if m["id"] == module_id), None)


def next_module(module_id: str) -> Optional[Dict[str, Any]]:
    nxt = PROGRESSION.get(module_id)
    return get_module(nxt) if nxt else None


def recommendation(module_id: str, score: float) -> Dict[str, Any]:
    done = get_module(module_id)
    return {
        "completed": done["title"] if done else module_id,
        "score": int(score),
        "next": next_module(module_id),
        "message": encouragement(score),
    }
