"""Message catalog for client-facing errors (Serbian default, English)."""

from __future__ import annotations

from typing import Any, Optional

from quizory_shared.schemas.common import Language

MESSAGES: dict[str, tuple[str, str]] = {
    # (sr, en)
    "authentication_required": ("Potrebna je prijava.", "Authentication required."),
    "invalid_session": ("Sesija je nevažeća ili je istekla.", "Invalid or expired session."),
    "session_revoked": ("Sesija je opozvana.", "Session has been revoked."),
    "invalid_credentials": ("Pogrešan email ili lozinka.", "Invalid email or password."),
    "account_pending_invite": (
        "Nalog čeka prihvatanje pozivnice.",
        "Account is pending an invitation.",
    ),
    "no_organization": ("Korisnik nema organizaciju.", "User has no organization."),
    "email_already_exists": ("Email je već registrovan.", "Email already registered."),
    "forbidden": ("Nemate dozvolu za ovu akciju.", "You are not allowed to perform this action."),
    "owner_only": ("Samo vlasnik može da izvrši ovu akciju.", "Only the owner can perform this action."),
    "insufficient_role": ("Nedovoljna prava pristupa.", "Insufficient permissions."),
    "not_found": ("Traženi resurs ne postoji.", "Resource not found."),
    "organization_not_found": ("Organizacija nije pronađena.", "Organization not found."),
    "feature_requires_premium": (
        "Funkcija '{feature}' zahteva Premium plan.",
        "Feature '{feature}' requires a premium plan.",
    ),
    "free_quiz_limit_reached": (
        "Dostignut je mesečni limit kvizova za besplatan plan.",
        "Free plan monthly quiz limit reached.",
    ),
    "free_member_limit_reached": (
        "Besplatan plan dozvoljava samo jednog korisnika.",
        "Free plan is limited to a single member.",
    ),
    "trial_only_from_free": (
        "Probni period se može pokrenuti samo sa besplatnog plana.",
        "A trial can only be started from the free plan.",
    ),
    "downgrade_remove_members_first": (
        "Uklonite članove pre prelaska na besplatan plan.",
        "Remove members before downgrading to the free plan.",
    ),
    "admin_cap_reached": (
        "Dostignut je maksimalan broj administratora (3).",
        "Admin cap reached (max 3 admin-level accounts).",
    ),
    "already_member": ("Korisnik je već član organizacije.", "User is already a member."),
    "cannot_change_owner_role": ("Uloga vlasnika se ne može menjati.", "The owner's role cannot be changed."),
    "cannot_assign_owner": ("Uloga vlasnika se ne može dodeliti.", "The owner role cannot be assigned."),
    "cannot_remove_owner": ("Vlasnik se ne može ukloniti.", "The owner cannot be removed."),
    "admin_cannot_remove_admin": (
        "Administrator ne može ukloniti drugog administratora.",
        "An admin cannot remove another admin.",
    ),
    "score_locked": ("Rezultat kategorije je zaključan.", "Category score is locked."),
    "help_already_used": (
        "Pomoć je već iskorišćena za ovaj tim u ovom kvizu.",
        "Help already used for this team in this quiz.",
    ),
    "invalid_quiz_transition": (
        "Nedozvoljena promena statusa kviza: {current} -> {target}.",
        "Cannot move quiz from {current} to {target}.",
    ),
    "team_not_in_quiz": ("Tim ne učestvuje u kvizu.", "Team is not part of this quiz."),
    "alias_exists": ("Alijas već postoji.", "Alias already exists."),
    "conflict": ("Zahtev je u sukobu sa trenutnim stanjem.", "Request conflicts with the current state."),
    "policy_violation": ("Akcija nije dozvoljena trenutnim planom.", "Action not allowed by the current plan."),
    "bad_request": ("Neispravan zahtev.", "Bad request."),
    "validation_error": ("Podaci zahteva nisu ispravni.", "Request validation failed."),
    "password_too_short": (
        "Lozinka mora imati najmanje 8 karaktera.",
        "Password must be at least 8 characters.",
    ),
}


def resolve_language(accept_language: Optional[str], fallback: Optional[str] = None) -> Language:
    """Pick the response language: explicit header first, then the token claim."""
    if accept_language:
        return Language.EN if accept_language.lower().startswith("en") else Language.SR
    if fallback == Language.EN.value:
        return Language.EN
    return Language.SR


def translate(code: str, language: Language | str = Language.SR, **params: Any) -> str:
    """Render the message for ``code``; unknown codes are returned as-is."""
    pair = MESSAGES.get(code)
    if pair is None:
        return code
    template = pair[1] if Language(language) == Language.EN else pair[0]
    try:
        return template.format(**params)
    except KeyError:
        return template
