from record_writer.matcher import KeywordMatcher


class TestKeywordMatcher:
    def test_finds_overlapping_keywords(self):
        matcher = KeywordMatcher(["he", "she", "his", "hers"])
        assert matcher.find_all("ushers") == {"he", "she", "hers"}

    def test_matches_substring_containment(self):
        keywords = ["세특", "과세특", "특기", "기사항"]
        text = "과세특 작성 시 특기사항을 확인함"
        matcher = KeywordMatcher(keywords)
        assert matcher.find_all(text) == {k for k in keywords if k in text}

    def test_no_match(self):
        matcher = KeywordMatcher(["TOEFL"])
        assert matcher.find_all("수업 중 발표함") == set()
        assert not matcher.contains_any("수업 중 발표함")

    def test_contains_any(self):
        matcher = KeywordMatcher(["논문", "학회"])
        assert matcher.contains_any("학회에서 발표함")

    def test_duplicates_and_empty_keywords_ignored(self):
        matcher = KeywordMatcher(["논문", "", "논문"])
        assert len(matcher) == 1

    def test_empty_matcher(self):
        matcher = KeywordMatcher([])
        assert len(matcher) == 0
        assert matcher.find_all("아무 문장") == set()
        assert not matcher.contains_any("아무 문장")
