import unittest
import tempfile
import hashlib
import shutil
import subprocess
import sys
import re
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent


class TestDupeMarkerCLI(unittest.TestCase):

    def setUp(self):
        self.test_root = Path(tempfile.mkdtemp(prefix="dupemarker_test_"))
        self.create_test_scenarios()

    def tearDown(self):
        shutil.rmtree(self.test_root, ignore_errors=True)

    def create_test_scenarios(self):
        # Simple duplicates
        self.simple_dir = self.test_root / "01_simple"
        self.simple_dir.mkdir()
        for i in range(3):
            (self.simple_dir / f"file{i}.txt").write_text("SIMPLE_DUPLICATE")

        # Same content spread over several directories
        self.nested_dir = self.test_root / "02_nested"
        self.nested_dir.mkdir()
        (self.nested_dir / "main.txt").write_text("NESTED_DUPLICATE")
        (self.nested_dir / "main copy.txt").write_text("NESTED_DUPLICATE")

        backup_dir = self.nested_dir / "backup"
        backup_dir.mkdir()
        (backup_dir / "copy.txt").write_text("NESTED_DUPLICATE")
        (backup_dir / "copy2.txt").write_text("NESTED_DUPLICATE")

        archive_dir = self.nested_dir / "archive"
        archive_dir.mkdir()
        (archive_dir / "archive.txt").write_text("NESTED_DUPLICATE")

        # Same size, different content
        self.lookalike_dir = self.test_root / "03_lookalike"
        self.lookalike_dir.mkdir()
        (self.lookalike_dir / "a.mp3").write_text("AAAA")
        (self.lookalike_dir / "b.mp3").write_text("BBBB")

        # Previously marked files
        self.marked_dir = self.test_root / "04_marked"
        self.marked_dir.mkdir()
        (self.marked_dir / "song.mp3").write_text("MARKED")
        (self.marked_dir / "old.dupe").write_text("MARKED")

        # Special characters
        self.special_dir = self.test_root / "05_special_chars"
        self.special_dir.mkdir()
        (self.special_dir / "test!@#$%^&.txt").write_text("SPECIAL")
        (self.special_dir / "copy!@#$%^&.txt").write_text("SPECIAL")

    def run_dupemarker(self, *args):
        cmd = [sys.executable, "-m", "dupe_marker.cli"] + list(args)
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=PROJECT_ROOT)
        return result

    def normalize_paths(self, text):
        if isinstance(text, str):
            return text.replace('\\', '/')
        return text

    def assertInOutput(self, expected, output):
        normalized_output = self.normalize_paths(output)
        normalized_expected = self.normalize_paths(expected)
        self.assertIn(normalized_expected, normalized_output)

    def test_simple_duplicates(self):
        result = self.run_dupemarker(str(self.simple_dir))
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 1 sets of duplicates", result.stdout)
        self.assertInOutput("Marking 2 duplicated files.", result.stdout)
        self.assertInOutput("Marked 2 files", result.stdout)

        self.assertTrue((self.simple_dir / "file0.txt").exists())
        self.assertEqual(len(list(self.simple_dir.glob("*.dupe"))), 2)

    def test_banner_on_stderr(self):
        result = self.run_dupemarker(str(self.simple_dir), "--dry-run")
        self.assertInOutput("Finding file dupes in", result.stderr)

    def test_digest_fragment_in_name(self):
        result = self.run_dupemarker(str(self.simple_dir))
        self.assertEqual(result.returncode, 0)

        fragment = hashlib.sha256(b"SIMPLE_DUPLICATE").digest()[:8].hex()
        self.assertTrue((self.simple_dir / f"file1.txt.{fragment}.dupe").exists())
        self.assertTrue((self.simple_dir / f"file2.txt.{fragment}.dupe").exists())

    def test_no_digest_and_custom_tag(self):
        result = self.run_dupemarker(str(self.simple_dir), "--no-digest", "--tag", ".dup")
        self.assertEqual(result.returncode, 0)
        self.assertTrue((self.simple_dir / "file1.txt.dup").exists())
        self.assertTrue((self.simple_dir / "file2.txt.dup").exists())

    def test_nested_duplicates_per_directory(self):
        result = self.run_dupemarker(str(self.nested_dir), "-r", "true")
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 2 sets of duplicates", result.stdout)

        self.assertTrue((self.nested_dir / "main.txt").exists())
        self.assertTrue((self.nested_dir / "backup" / "copy.txt").exists())
        self.assertTrue((self.nested_dir / "archive" / "archive.txt").exists())
        self.assertEqual(len(list(self.nested_dir.rglob("*.dupe"))), 2)

    def test_non_recursive(self):
        result = self.run_dupemarker(str(self.nested_dir), "-r", "false")
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 1 sets of duplicates", result.stdout)
        self.assertNotIn("backup", self.normalize_paths(result.stdout))

    def test_lookalike_not_marked(self):
        result = self.run_dupemarker(str(self.lookalike_dir))
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("No duplicate files found", result.stdout)
        self.assertInOutput("Marking 0 duplicated files.", result.stdout)

    def test_marked_files_ignored(self):
        result = self.run_dupemarker(str(self.marked_dir))
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("No duplicate files found", result.stdout)
        self.assertTrue((self.marked_dir / "song.mp3").exists())
        self.assertTrue((self.marked_dir / "old.dupe").exists())

    def test_second_run_marks_nothing(self):
        first = self.run_dupemarker(str(self.test_root))
        self.assertEqual(first.returncode, 0)

        second = self.run_dupemarker(str(self.test_root))
        self.assertEqual(second.returncode, 0)
        self.assertInOutput("No duplicate files found", second.stdout)
        self.assertInOutput("Marking 0 duplicated files.", second.stdout)

    def test_dry_run(self):
        result = self.run_dupemarker(str(self.simple_dir), "--dry-run")
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Dry run:", result.stdout)
        self.assertInOutput("Would mark 2 duplicated files", result.stdout)
        self.assertEqual(list(self.simple_dir.glob("*.dupe")), [])

    def test_show_size(self):
        result = self.run_dupemarker(str(self.simple_dir), "--show-size", "--dry-run")
        self.assertEqual(result.returncode, 0)

        size_pattern = r'\d+\.\d+\s+[KMG]?B'
        self.assertTrue(re.search(size_pattern, result.stdout))

    def test_jobs(self):
        result = self.run_dupemarker(str(self.test_root), "--jobs", "4", "--dry-run")
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 4 sets of duplicates", result.stdout)

    def test_quiet_mode(self):
        result = self.run_dupemarker(str(self.simple_dir), "--quiet")
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stderr.strip(), "")
        self.assertInOutput("Found 1 sets of duplicates", result.stdout)

    def test_verbose_mode(self):
        result = self.run_dupemarker(str(self.simple_dir), "--verbose")
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("DEBUG", result.stderr)

    def test_invalid_directory(self):
        invalid_dir = self.test_root / "does_not_exist"
        result = self.run_dupemarker(str(invalid_dir))
        self.assertNotEqual(result.returncode, 0)
        self.assertInOutput("Error", result.stderr)
        self.assertInOutput("not a valid directory", result.stderr)

    def test_invalid_jobs(self):
        result = self.run_dupemarker(str(self.simple_dir), "--jobs", "0")
        self.assertNotEqual(result.returncode, 0)
        self.assertInOutput("Number of jobs must be at least 1", result.stderr)

    def test_special_characters(self):
        result = self.run_dupemarker(str(self.special_dir))
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 1 sets of duplicates", result.stdout)

        normalized_output = self.normalize_paths(result.stdout)
        self.assertIn("test!@#$%^&.txt", normalized_output)
        self.assertIn("copy!@#$%^&.txt", normalized_output)

    def test_path_with_spaces(self):
        spaced_dir = self.test_root / "test folder with spaces"
        spaced_dir.mkdir()
        (spaced_dir / "file1.txt").write_text("SPACES")
        (spaced_dir / "file2.txt").write_text("SPACES")

        result = self.run_dupemarker(str(spaced_dir))
        self.assertEqual(result.returncode, 0)
        self.assertInOutput("Found 1 sets of duplicates", result.stdout)

    def test_multiple_duplicate_groups(self):
        multi_dir = self.test_root / "18_multiple_groups"
        multi_dir.mkdir()

        for i in range(2):
            (multi_dir / f"text_{i}.txt").write_text("TEXT_DUPE")
        for i in range(3):
            (multi_dir / f"binary_{i}.bin").write_bytes(b"\x00\x01\x02")
        for i in range(2):
            (multi_dir / f"empty_{i}.txt").touch()

        result = self.run_dupemarker(str(multi_dir), "--dry-run")
        self.assertEqual(result.returncode, 0)

        set_count = len(re.findall(r'Set \d+', result.stdout))
        self.assertEqual(set_count, 3)


if __name__ == "__main__":
    unittest.main()
