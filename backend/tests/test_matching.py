# tests/test_matching.py
# Pure matching: no database, transient model instances only.

from datetime import date

from parish_office.models.sacrament_record import SacramentRecord, SacramentType
from parish_office.services.matching import (
    MatchCriteria,
    certificate_criteria,
    find_best_match,
    identity_key,
    normalize_name,
)


def _rec(id, type=SacramentType.BAPTISM, name="Juan Dela Cruz", when=date(1995, 6, 4), **kw):
    return SacramentRecord(
        id=id, type=type, name=name, date=when,
        officiant="Fr. X", details="-", is_archived=kw.pop("is_archived", False), **kw,
    )


def test_normalize_name_trims_collapses_and_casefolds():
    assert normalize_name("  Juan   Dela\tCruz ") == "juan dela cruz"
    assert normalize_name(None) == ""


def test_most_recent_match_wins_then_highest_id():
    older = _rec(1, when=date(1995, 6, 4), birth_date=date(1995, 5, 1))
    newer = _rec(2, when=date(1996, 1, 1), birth_date=date(1995, 5, 1))
    same_day = _rec(3, when=date(1996, 1, 1), birth_date=date(1995, 5, 1))
    criteria = MatchCriteria(SacramentType.BAPTISM, name="juan dela cruz", birth_date=date(1995, 5, 1))

    assert find_best_match(criteria, [older, newer]) is newer
    assert find_best_match(criteria, [older, same_day, newer]) is same_day


def test_archived_and_other_types_never_match():
    archived = _rec(1, birth_date=date(1995, 5, 1), is_archived=True)
    confirmation = _rec(2, type=SacramentType.CONFIRMATION, birth_date=date(1995, 5, 1))
    criteria = MatchCriteria(SacramentType.BAPTISM, name="Juan Dela Cruz", birth_date=date(1995, 5, 1))

    assert find_best_match(criteria, [archived, confirmation]) is None


def test_birth_date_must_match_exactly_when_given():
    rec = _rec(1, birth_date=date(1995, 5, 2))
    assert find_best_match(
        MatchCriteria(SacramentType.BAPTISM, name="Juan Dela Cruz", birth_date=date(1995, 5, 1)), [rec]
    ) is None
    # Omitted fields are not compared
    assert find_best_match(MatchCriteria(SacramentType.BAPTISM, name="Juan Dela Cruz"), [rec]) is rec


def test_marriage_matches_on_couple_and_date():
    rec = _rec(
        1, type=SacramentType.MARRIAGE, name="Jose Santos & Ana Reyes", when=date(2020, 2, 14),
        groom_name="Jose Santos", bride_name="Ana Reyes",
    )
    criteria = certificate_criteria(
        SacramentType.MARRIAGE, groom_name="JOSE SANTOS", bride_name="ana reyes", marriage_date=date(2020, 2, 14)
    )
    assert find_best_match(criteria, [rec]) is rec

    wrong_day = certificate_criteria(
        SacramentType.MARRIAGE, groom_name="Jose Santos", bride_name="Ana Reyes", marriage_date=date(2020, 2, 15)
    )
    assert find_best_match(wrong_day, [rec]) is None


def test_funeral_matches_on_date_of_death():
    rec = _rec(1, type=SacramentType.FUNERAL, name="Lola Basyang", date_of_death=date(2024, 3, 1))
    hit = certificate_criteria(SacramentType.FUNERAL, recipient_name="Lola Basyang", recipient_death_date=date(2024, 3, 1))
    miss = certificate_criteria(SacramentType.FUNERAL, recipient_name="Lola Basyang", recipient_death_date=date(2024, 3, 2))
    assert find_best_match(hit, [rec]) is rec
    assert find_best_match(miss, [rec]) is None


def test_rejection_notes_use_locale_dates():
    note = MatchCriteria(SacramentType.BAPTISM, name="Juan Dela Cruz", birth_date=date(1995, 5, 1)).rejection_note()
    assert note == "No matching baptism record found for Juan Dela Cruz (05/01/1995)."

    no_birth = MatchCriteria(SacramentType.CONFIRMATION, name="Ana").rejection_note()
    assert "birth date not provided" in no_birth

    marriage = certificate_criteria(
        SacramentType.MARRIAGE, groom_name="Jose", bride_name="Ana", marriage_date=date(2020, 2, 14)
    ).rejection_note()
    assert marriage == "No matching marriage record found for Jose and Ana (02/14/2020)."

    funeral = certificate_criteria(
        SacramentType.FUNERAL, recipient_name="Lola", recipient_death_date=date(2024, 3, 1)
    ).rejection_note()
    assert "(date of death: 03/01/2024)" in funeral


def test_identity_key_is_normalized():
    a = identity_key(SacramentType.BAPTISM, ["Juan  Dela Cruz"], date(1995, 5, 1))
    b = identity_key(SacramentType.BAPTISM, [" juan dela cruz "], date(1995, 5, 1))
    assert a == b == "BAPTISM|juan dela cruz|1995-05-01"
