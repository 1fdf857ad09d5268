import unittest

from courseadvisor.catalog import CourseCatalog
from courseadvisor.intents import Intent, classify, normalize_utterance, parse_credits, parse_period
from courseadvisor.model import CourseRecord
from courseadvisor.resolver import CourseResolver


class TestHelpers(unittest.TestCase):
    def test_normalize_keeps_decimals(self) -> None:
        self.assertEqual(normalize_utterance("I'm done."), "im done")
        self.assertEqual(normalize_utterance("7.5 credits, please!"), "7.5 credits please")

    def test_parse_period(self) -> None:
        self.assertEqual(parse_period("period 2"), "P2")
        self.assertEqual(parse_period("P4"), "P4")
        self.assertEqual(parse_period("the first one"), "P1")
        self.assertIsNone(parse_period("whenever"))

    def test_parse_credits(self) -> None:
        self.assertEqual(parse_credits("7.5 credits"), "7.5")
        self.assertEqual(parse_credits("7,5"), "7.5")
        self.assertEqual(parse_credits("six"), "6.0")
        self.assertEqual(parse_credits("seven and a half"), "7.5")
        self.assertIsNone(parse_credits("a lot"))


class TestClassify(unittest.TestCase):
    def test_silence(self) -> None:
        self.assertIs(classify("").intent, Intent.NO_RESPONSE)
        self.assertIs(classify("   ").intent, Intent.NO_RESPONSE)
        self.assertIs(classify(None).intent, Intent.NO_RESPONSE)

    def test_finish_phrases(self) -> None:
        for text in ("I'm finished", "That's all", "Stop", "No more courses", "I'm done planning"):
            with self.subTest(text=text):
                self.assertIs(classify(text).intent, Intent.FINISH)

    def test_cart_commands(self) -> None:
        self.assertIs(classify("Undo").intent, Intent.UNDO)
        self.assertIs(classify("I made a mistake").intent, Intent.UNDO)
        self.assertIs(classify("Clear all").intent, Intent.CLEAR_ALL)
        self.assertIs(classify("Reset my schedule").intent, Intent.CLEAR_ALL)
        self.assertIs(classify("Check my schedule").intent, Intent.CHECK_CART)
        self.assertIs(classify("What courses do I have?").intent, Intent.CHECK_CART)

    def test_clear_period_carries_slot(self) -> None:
        ev = classify("Clear all courses in period 2")
        self.assertIs(ev.intent, Intent.CLEAR_PERIOD)
        self.assertEqual(ev.period, "P2")
        ev = classify("Remove everything from P3")
        self.assertIs(ev.intent, Intent.CLEAR_PERIOD)
        self.assertEqual(ev.period, "P3")

    def test_add_extracts_course_text(self) -> None:
        ev = classify("Add deep learning to my schedule")
        self.assertIs(ev.intent, Intent.ADD_COURSE)
        self.assertEqual(ev.course, "deep learning")
        self.assertEqual(classify("I want to take music acoustic").course, "music acoustic")
        self.assertIsNone(classify("add").course)

    def test_remove_extracts_course_text(self) -> None:
        ev = classify("Delete code DD2424")
        self.assertIs(ev.intent, Intent.REMOVE_COURSE)
        self.assertEqual(ev.course, "dd2424")

    def test_yes_no_done_start(self) -> None:
        self.assertIs(classify("Yes").intent, Intent.YES)
        self.assertIs(classify("Sure, go ahead").intent, Intent.YES)
        self.assertIs(classify("okay").intent, Intent.YES)
        self.assertIs(classify("Nope").intent, Intent.NO)
        self.assertIs(classify("not really").intent, Intent.NO)
        self.assertIs(classify("I'm done").intent, Intent.DONE)
        self.assertIs(classify("Let's plan my schedule").intent, Intent.START_PLANNING)

    def test_confirmation_replies_are_yes(self) -> None:
        for text in ("add it", "Add it to my schedule", "Please add it", "add it please", "I'll take it", "remove it"):
            with self.subTest(text=text):
                ev = classify(text)
                self.assertIs(ev.intent, Intent.YES)
                self.assertIsNone(ev.course)
        self.assertIs(classify("add italian").intent, Intent.ADD_COURSE)

    def test_bare_course_name_needs_resolver(self) -> None:
        resolver = CourseResolver(CourseCatalog([CourseRecord("DD2424", "Deep Learning, Advanced Course", 7.5, ("P2",))]))
        self.assertIs(classify("DD 2424").intent, Intent.UNKNOWN)
        ev = classify("DD 2424", resolver=resolver)
        self.assertIs(ev.intent, Intent.ADD_COURSE)
        self.assertEqual(ev.course, "DD 2424")
        self.assertIs(classify("blah blah", resolver=resolver).intent, Intent.UNKNOWN)

    def test_filter_steps(self) -> None:
        ev = classify("period two", filter_step="period")
        self.assertIs(ev.intent, Intent.TELL_PERIOD)
        self.assertEqual(ev.period, "P2")
        ev = classify("7.5", filter_step="credits")
        self.assertIs(ev.intent, Intent.TELL_CREDITS)
        self.assertEqual(ev.credits, "7.5")
        self.assertIs(classify("any", filter_step="credits").intent, Intent.ANY_OPTION)
        self.assertIs(classify("Interactive Media Technology", filter_step="programme").intent, Intent.UNKNOWN)
        self.assertIs(classify("that's all", filter_step="period").intent, Intent.FINISH)


if __name__ == "__main__":
    unittest.main()
