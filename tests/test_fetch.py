"""
Tests for the course data download.

No network: a fake session serves canned documents per URL.
"""

import json
import tempfile
import unittest
from pathlib import Path

import requests

from courseadvisor.catalog import CourseCatalog
from courseadvisor.fetch import detail_url, fetch_courses, write_catalog


class FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self.payload = payload
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, documents: dict) -> None:
        self.documents = documents
        self.requested: list[str] = []

    def get(self, url: str, timeout: float = 0) -> FakeResponse:
        self.requested.append(url)
        if url in self.documents:
            return FakeResponse(self.documents[url])
        return FakeResponse({}, status=404)


def document(code: str, title: str) -> dict:
    return {
        "course": {"courseCode": code, "title": title, "credits": 7.5},
        "roundInfos": [{"round": {"courseRoundTerms": [{"creditsP3": 7.5}]}}],
    }


class TestFetchCourses(unittest.TestCase):
    def test_fetch_caches_and_skips_failures(self) -> None:
        session = FakeSession({detail_url("DT2212"): document("DT2212", "Music Acoustics")})
        with tempfile.TemporaryDirectory() as d:
            raw_dir = Path(d) / "raw"
            descriptors = fetch_courses(["dt2212", "DT2212", "XX9999"], raw_dir=raw_dir, sleep_seconds=0, session=session)

            self.assertEqual(session.requested, [detail_url("DT2212"), detail_url("XX9999")])
            self.assertEqual(len(descriptors), 1)
            self.assertEqual(descriptors[0]["detailedInformation"]["course"]["courseCode"], "DT2212")
            self.assertTrue((raw_dir / "DT2212.json").exists())
            self.assertFalse((raw_dir / "XX9999.json").exists())

            # second run is served from the cache
            again = fetch_courses(["DT2212"], raw_dir=raw_dir, sleep_seconds=0, session=session)
            self.assertEqual(again, descriptors)
            self.assertEqual(len(session.requested), 2)

    def test_corrupt_cache_is_fetched_again(self) -> None:
        session = FakeSession({detail_url("DD2424"): document("DD2424", "Deep Learning, Advanced Course")})
        with tempfile.TemporaryDirectory() as d:
            raw_dir = Path(d) / "raw"
            raw_dir.mkdir()
            (raw_dir / "DD2424.json").write_text('{"course": {', encoding="utf-8")

            descriptors = fetch_courses(["DD2424"], raw_dir=raw_dir, sleep_seconds=0, session=session)

            self.assertEqual(session.requested, [detail_url("DD2424")])
            self.assertEqual(descriptors[0]["detailedInformation"]["course"]["courseCode"], "DD2424")
            cached = json.loads((raw_dir / "DD2424.json").read_text(encoding="utf-8"))
            self.assertEqual(cached["course"]["courseCode"], "DD2424")

    def test_corrupt_cache_and_failed_download_skips_only_that_course(self) -> None:
        session = FakeSession({detail_url("DT2212"): document("DT2212", "Music Acoustics")})
        with tempfile.TemporaryDirectory() as d:
            raw_dir = Path(d) / "raw"
            raw_dir.mkdir()
            (raw_dir / "DD2424.json").write_bytes(b"\xff\xfe\x00garbage")

            descriptors = fetch_courses(["DD2424", "DT2212"], raw_dir=raw_dir, sleep_seconds=0, session=session)

            self.assertEqual([x["detailedInformation"]["course"]["courseCode"] for x in descriptors], ["DT2212"])

    def test_written_catalog_loads(self) -> None:
        session = FakeSession({detail_url("DT2212"): document("DT2212", "Music Acoustics")})
        with tempfile.TemporaryDirectory() as d:
            descriptors = fetch_courses(["DT2212"], raw_dir=Path(d) / "raw", sleep_seconds=0, session=session)
            out = Path(d) / "course_all.json"
            write_catalog(descriptors, out)

            self.assertIsInstance(json.loads(out.read_text(encoding="utf-8")), list)
            catalog = CourseCatalog.load(out)
            record = catalog.by_code("DT2212")
            assert record is not None
            self.assertEqual(record.available_periods, ("P3",))


if __name__ == "__main__":
    unittest.main()
