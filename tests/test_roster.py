import pytest

from core.classifier import BUBBLE_BAND
from core.config import EAST_SENIOR_I, KERR_AGE_GROUP, SENIOR_COLUMNS, YNAT_KEY
from core.models import ColumnMap, ConfigError, RosterQuery, StandardColumn, StandardKind
from core.normalizer import normalize_rows
from core.roster import build_listing, build_roster, count_swimmers, summarize_cut


def senior_row(name, gender, age, event, time, ynat="", aaa="", site="East", group="Senior I"):
    cells = [""] * 17
    cells[:7] = [name, gender, age, site, group, event, time]
    cells[13] = aaa
    cells[15] = ynat
    return cells


def age_group_row(name, gender, age, group, event, time, b="", bb="", a="", agc=""):
    cells = [""] * 17
    cells[:7] = [name, gender, age, "Kerr", group, event, time]
    cells[9], cells[10], cells[11], cells[16] = b, bb, a, agc
    return cells


def roster_of(rows, query=EAST_SENIOR_I):
    return build_roster(normalize_rows(rows, query.columns), query)


def test_duplicate_rows_fold_into_one_swimmer_with_max_age():
    rows = [
        senior_row("Alice", "F", "15", "100 Free SCY", "58.50", ynat="59.00"),
        senior_row("Alice", "F", "16", "100 Free SCY", "58.50", ynat="59.00"),
    ]
    roster = roster_of(rows)
    assert len(roster) == 1
    alice = roster[0]
    assert alice.age_num == 16
    assert alice.age == "16"
    assert [m.label for m in alice.achieved] == ["100 Free SCY (58.50)"]


def test_age_is_never_downgraded():
    rows = [
        senior_row("Bob", "M", "17", "", ""),
        senior_row("Bob", "M", "15", "", ""),
        senior_row("bob", "m", "", "", ""),
    ]
    (bob,) = roster_of(rows)
    assert bob.age_num == 17
    assert bob.name == "Bob"


def test_rows_without_identity_are_dropped():
    rows = [
        senior_row("", "F", "15", "100 Free SCY", "58.50", ynat="59.00"),
        senior_row("Carol", "", "15", "100 Free SCY", "58.50", ynat="59.00"),
    ]
    assert roster_of(rows) == []


def test_rows_without_time_still_create_swimmer():
    (dana,) = roster_of([senior_row("Dana", "F", "14", "100 Free SCY", "NT", ynat="59.00")])
    assert dana.age_num == 14
    assert dana.achieved == () and dana.next_up == ()


def test_near_miss_also_counts_as_next_up():
    (eve,) = roster_of([senior_row("Eve", "F", "15", "100 Free SCY", "59.02", ynat="59.00")])
    assert [m.event for m in eve.near_misses] == ["100 Free SCY"]
    assert eve.achieved == ()
    (mark,) = eve.next_up
    assert mark.diff_sec == pytest.approx(0.02)
    assert mark.delta_sec == pytest.approx(-0.02)


def test_achieved_list_sorted_by_time_then_event():
    rows = [
        senior_row("Fay", "F", "15", "200 Free SCY", "1:50.00", ynat="1:55.00"),
        senior_row("Fay", "F", "15", "50 Free SCY", "24.00", ynat="25.00"),
        senior_row("Fay", "F", "15", "50 Back SCY", "24.00", ynat="26.00"),
    ]
    (fay,) = roster_of(rows)
    assert [m.event for m in fay.achieved] == ["50 Back SCY", "50 Free SCY", "200 Free SCY"]


def test_next_up_keeps_five_closest_misses():
    overs = [3.0, 0.5, 2.0, 0.1, 4.0, 1.0, 6.0]
    rows = [
        senior_row("Gus", "M", "16", f"Event {i}", f"{60 + over:.2f}", ynat="60.00")
        for i, over in enumerate(overs)
    ]
    (gus,) = roster_of(rows)
    diffs = [m.diff_sec for m in gus.next_up]
    assert len(diffs) == 5
    assert diffs == sorted(diffs)
    assert diffs == pytest.approx([0.1, 0.5, 1.0, 2.0, 3.0])


def test_duplicate_event_time_pairs_dedupe_case_insensitively():
    rows = [
        senior_row("Hal", "M", "16", "100 Fly SCY", "55.00", ynat="54.00"),
        senior_row("Hal", "M", "16", "100 fly scy", "55.00", ynat="54.00"),
        senior_row("Hal", "M", "16", "100 Fly SCY", "55.00", ynat="54.00"),
    ]
    (hal,) = roster_of(rows)
    assert len(hal.next_up) == 1
    assert hal.next_up[0].event == "100 Fly SCY"


def test_aaa_and_best_im_tracked_independently_of_cut():
    rows = [
        senior_row("Ida", "F", "17", "200 IM SCY", "2:05.00", ynat="2:04.00", aaa="2:06.00"),
        senior_row("Ida", "F", "17", "200 IM SCY", "2:03.50", ynat="2:04.00", aaa="2:06.00"),
        senior_row("Ida", "F", "17", "100 Free SCY", "52.00"),
    ]
    (ida,) = roster_of(rows)
    assert [m.time_str for m in ida.graded["aaa"]] == ["2:03.50", "2:05.00"]
    assert ida.best_of["200 IM SCY"].time_str == "2:03.50"
    assert ida.best_of["400 IM SCY"] is None


def test_graded_standards_record_every_tier_cleared():
    rows = [
        age_group_row("Jo", "F", "10", "Silver", "50 Free SCY", "30.00", b="35.00", bb="32.00", a="30.50", agc="31.00"),
        age_group_row("Jo", "F", "10", "Silver", "100 Free SCY", "1:10.00", b="1:15.00", bb="1:09.00"),
    ]
    (jo,) = roster_of(rows, KERR_AGE_GROUP)
    assert [m.event for m in jo.graded["b"]] == ["50 Free SCY", "100 Free SCY"]
    assert [m.event for m in jo.graded["bb"]] == ["50 Free SCY"]
    assert [m.event for m in jo.graded["a"]] == ["50 Free SCY"]
    assert [m.event for m in jo.graded["agc"]] == ["50 Free SCY"]
    assert jo.next_up == () and jo.near_misses == ()
    assert jo.group == "Silver"


def test_near_band_comes_from_query():
    row = senior_row("Kim", "F", "15", "100 Free SCY", "1:00.70", ynat="59.00")
    wide = RosterQuery(columns=SENIOR_COLUMNS, near_band=BUBBLE_BAND)
    assert roster_of([row])[0].near_misses == ()
    assert len(roster_of([row], wide)[0].near_misses) == 1


def test_malformed_rows_never_raise():
    rows = [[], [None] * 3, ["Lee", "M", "abc", None, None, "50 Free SCY", "fast"], senior_row("Lee", "M", "x", "50 Free SCY", "24.0", ynat="?")]
    (lee,) = roster_of(rows)
    assert lee.age_num == -1
    assert lee.next_up == ()


def test_outputs_are_read_only():
    (alice,) = roster_of([senior_row("Alice", "F", "15", "100 Free SCY", "58.50", ynat="59.00", aaa="1:00.00")])
    with pytest.raises(AttributeError):
        alice.age_num = 3
    with pytest.raises(TypeError):
        alice.graded["aaa"] = ()


def test_only_one_cut_column_allowed():
    with pytest.raises(ConfigError):
        ColumnMap(standards=(StandardColumn("x", 1, StandardKind.CUT), StandardColumn("y", 2, StandardKind.CUT)))
    with pytest.raises(ConfigError):
        RosterQuery(next_up_limit=0)


def test_build_listing_keeps_oldest_row_per_site_group_name():
    rows = normalize_rows(
        [
            ["Zed", "M", "12", "East", "Senior I"],
            ["zed", "M", "14", "East", "Senior I"],
            ["Amy", "F", "13", "East", "Senior I"],
            ["Amy", "F", "11", "West", "Age Group"],
            ["NoSite", "F", "11", "", "Age Group"],
        ]
    )
    listing = build_listing(rows)
    assert [(e.site, e.name, e.age_num) for e in listing] == [
        ("East", "Amy", 13),
        ("East", "zed", 14),
        ("West", "Amy", 11),
    ]


def test_count_swimmers_counts_distinct_names():
    rows = normalize_rows([["A"], ["A"], ["B"], [""]])
    assert count_swimmers(rows) == 2


def test_summarize_cut_groups_events_by_swimmer():
    rows = normalize_rows(
        [
            senior_row("Nia", "F", "15", "200 Free SCY", "1:50.00", ynat="1:51.00"),
            senior_row("Nia", "F", "15", "100 Free SCY", "50.00", ynat="51.00"),
            senior_row("Abe", "M", "16", "100 Back SCY", "52.00", ynat="51.00"),
            senior_row("Abe", "M", "16", "100 Fly SCY", "58.00", ynat="51.00"),
        ],
        SENIOR_COLUMNS,
    )
    summary = summarize_cut(rows, YNAT_KEY)
    assert summary.qualifiers == (("Nia", ("100 Free SCY", "200 Free SCY")),)
    assert summary.bubble == (("Abe", ("100 Back SCY",)),)
