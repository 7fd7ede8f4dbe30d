"""Tests for unified diff parsing and the line numbers every comment anchor depends on."""

from prwarden_core.diff import LineKind, parse_diff

MULTI_FILE_DIFF = """\
diff --git a/src/utils.js b/src/utils.js
index 1111111..2222222 100644
--- a/src/utils.js
+++ b/src/utils.js
@@ -1,3 +1,4 @@
 const a = 1;
-const b = 2;
+const b = 3;
+const c = foo.bar(x);
 module.exports = { a, b };
@@ -10,2 +11,3 @@ function helper() {
 context c
+added in hunk 2
 context d
diff --git a/README.md b/README.md
--- a/README.md
+++ b/README.md
@@ -5 +5 @@
-old
+new
"""


def test_files_in_document_order():
    diff = parse_diff(MULTI_FILE_DIFF)
    assert [f.path for f in diff.files] == ["src/utils.js", "README.md"]


def test_hunk_header_fields():
    hunk = parse_diff(MULTI_FILE_DIFF).files[0].hunks[1]
    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (10, 2, 11, 3)
    assert hunk.section == "function helper() {"


def test_counts_default_to_one():
    hunk = parse_diff(MULTI_FILE_DIFF).files[1].hunks[0]
    assert (hunk.old_count, hunk.new_count) == (1, 1)


def test_removed_lines_do_not_advance_new_side():
    lines = parse_diff(MULTI_FILE_DIFF).files[0].hunks[0].lines
    assert [(l.kind, l.new_line_number) for l in lines] == [
        (LineKind.CONTEXT, 1),
        (LineKind.REMOVED, None),
        (LineKind.ADDED, 2),
        (LineKind.ADDED, 3),
        (LineKind.CONTEXT, 4),
    ]


def test_removed_lines_carry_old_line_number():
    removed = parse_diff(MULTI_FILE_DIFF).files[0].hunks[0].lines[1]
    assert removed.old_line_number == 2
    assert removed.text == "const b = 2;"


def test_new_side_restarts_at_each_hunk_header():
    utils = parse_diff(MULTI_FILE_DIFF).files[0]
    assert utils.added_line_numbers == [2, 3, 12]


def test_added_lines_iterates_whole_diff():
    pairs = [(f.path, l.new_line_number) for f, l in parse_diff(MULTI_FILE_DIFF).added_lines()]
    assert pairs == [("src/utils.js", 2), ("src/utils.js", 3), ("src/utils.js", 12), ("README.md", 5)]


def test_empty_input():
    assert parse_diff("").files == []
    assert parse_diff(None).files == []


def test_new_and_deleted_files():
    text = """\
diff --git a/new.py b/new.py
new file mode 100644
--- /dev/null
+++ b/new.py
@@ -0,0 +1,2 @@
+print(1)
+print(2)
diff --git a/gone.py b/gone.py
deleted file mode 100644
--- a/gone.py
+++ /dev/null
@@ -1 +0,0 @@
-x = 1
"""
    new, gone = parse_diff(text).files
    assert new.is_new and new.path == "new.py" and new.added_line_numbers == [1, 2]
    assert gone.is_deleted and gone.path == "gone.py" and gone.added_line_numbers == []


def test_rename_without_content_change():
    text = """\
diff --git a/old/name.js b/new/name.js
similarity index 100%
rename from old/name.js
rename to new/name.js
"""
    (f,) = parse_diff(text).files
    assert f.path == "new/name.js"
    assert f.old_path == "old/name.js"
    assert f.is_rename


def test_binary_file():
    text = "diff --git a/logo.png b/logo.png\nBinary files a/logo.png and b/logo.png differ\n"
    (f,) = parse_diff(text).files
    assert f.is_binary and f.hunks == []


def test_plain_unified_diff_without_git_headers():
    text = """\
--- a/one.txt\t2024-01-01 00:00:00
+++ b/one.txt\t2024-01-02 00:00:00
@@ -1 +1,2 @@
 keep
+more
--- a/two.txt
+++ b/two.txt
@@ -3,0 +4 @@
+tail
"""
    files = parse_diff(text).files
    assert [f.path for f in files] == ["one.txt", "two.txt"]
    assert files[0].added_line_numbers == [2]
    assert files[1].added_line_numbers == [4]


def test_content_that_looks_like_file_headers_stays_in_hunk():
    text = """\
diff --git a/notes.md b/notes.md
--- a/notes.md
+++ b/notes.md
@@ -1,2 +1,2 @@
--- a/old
+++ b/new
 end
"""
    (f,) = parse_diff(text).files
    lines = f.hunks[0].lines
    assert [l.kind for l in lines] == [LineKind.REMOVED, LineKind.ADDED, LineKind.CONTEXT]
    assert lines[1].text == "++ b/new"
    assert lines[1].new_line_number == 1


def test_no_newline_marker_is_ignored():
    text = "--- a/f\n+++ b/f\n@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n"
    (f,) = parse_diff(text).files
    assert [l.kind for l in f.hunks[0].lines] == [LineKind.REMOVED, LineKind.ADDED]


def test_empty_context_line_without_space():
    text = "--- a/f\n+++ b/f\n@@ -1,3 +1,4 @@\n a\n\n+b\n c\n"
    (f,) = parse_diff(text).files
    assert f.added_line_numbers == [3]


def test_malformed_hunk_header_is_skipped_not_fatal():
    text = """\
diff --git a/bad.js b/bad.js
--- a/bad.js
+++ b/bad.js
@@ bad header @@
+ignored
diff --git a/good.js b/good.js
--- a/good.js
+++ b/good.js
@@ -1 +1,2 @@
 ok
+kept
"""
    bad, good = parse_diff(text).files
    assert bad.hunks == []
    assert good.added_line_numbers == [2]


def test_hunk_body_shorter_than_header_counts():
    text = "--- a/f\n+++ b/f\n@@ -1,5 +1,6 @@\n a\n+b\nstray text\n@@ -20 +21 @@\n-x\n+y\n"
    (f,) = parse_diff(text).files
    assert f.added_line_numbers == [2, 21]


def test_unicode_line_separators_stay_inside_added_line():
    text = "--- a/f.py\n+++ b/f.py\n@@ -1,1 +1,4 @@\n x = 1\n+y = '\x0c'\n+z = foo.bar(x)\n+w = '\u2028'\n"
    (f,) = parse_diff(text).files
    added = [(l.new_line_number, l.text) for l in f.hunks[0].added_lines]
    assert added == [(2, "y = '\x0c'"), (3, "z = foo.bar(x)"), (4, "w = '\u2028'")]


def test_crlf_line_endings():
    text = "--- a/f\r\n+++ b/f\r\n@@ -1 +1,2 @@\r\n a\r\n+b\r\n"
    (f,) = parse_diff(text).files
    assert f.path == "f"
    assert [l.text for l in f.hunks[0].added_lines] == ["b"]
