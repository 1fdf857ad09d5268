import tempfile
import unittest
from pathlib import Path

from courseadvisor.catalog import CourseCatalog
from courseadvisor.export import export_course_dump
from courseadvisor.model import CourseRecord


class TestExportCourseDump(unittest.TestCase):
    def test_export_writes_one_line_per_course(self) -> None:
        catalog = CourseCatalog(
            [
                CourseRecord("DD2424", "Deep Learning, Advanced Course", 7.5, ("P2",)),
                CourseRecord("DT2213", "Musical Communication and Music Technology", 7.5, ("P1", "P2")),
            ]
        )
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "nested" / "course_dump.txt"
            n = export_course_dump(catalog, out)
            self.assertEqual(n, 2)

            lines = out.read_text(encoding="utf-8").splitlines()
            self.assertEqual(lines[0], "=== Course List Dump (2 courses) ===")
            self.assertIn("[DD2424] Deep Learning, Advanced Course (7.5 hp, P2)", lines)
            self.assertIn("[DT2213] Musical Communication and Music Technology (7.5 hp, P1/P2)", lines)

    def test_export_empty_catalog(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "course_dump.txt"
            self.assertEqual(export_course_dump(CourseCatalog(), out), 0)
            self.assertTrue(out.read_text(encoding="utf-8").startswith("=== Course List Dump (0 courses)"))


if __name__ == "__main__":
    unittest.main()
