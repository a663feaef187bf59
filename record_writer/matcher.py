"""여러 키워드를 한 번의 순회로 찾는 Aho–Corasick 매처.

규칙 카테고리마다 하나씩 만들어 두고 문장마다 재사용한다.
결과는 키워드별 부분 문자열 포함 검사와 같다.
"""

from collections import deque


class KeywordMatcher:
    def __init__(self, keywords):
        self.keywords = tuple(dict.fromkeys(k for k in keywords if k))
        self._goto = [{}]
        self._fail = [0]
        self._output = [set()]
        for keyword in self.keywords:
            self._add(keyword)
        self._build_failure_links()

    def __len__(self):
        return len(self.keywords)

    def _add(self, keyword):
        state = 0
        for char in keyword:
            nxt = self._goto[state].get(char)
            if nxt is None:
                nxt = len(self._goto)
                self._goto[state][char] = nxt
                self._goto.append({})
                self._fail.append(0)
                self._output.append(set())
            state = nxt
        self._output[state].add(keyword)

    def _build_failure_links(self):
        queue = deque(self._goto[0].values())
        while queue:
            state = queue.popleft()
            for char, nxt in self._goto[state].items():
                queue.append(nxt)
                fallback = self._fail[state]
                while fallback and char not in self._goto[fallback]:
                    fallback = self._fail[fallback]
                target = self._goto[fallback].get(char, 0)
                self._fail[nxt] = target if target != nxt else 0
                self._output[nxt] |= self._output[self._fail[nxt]]

    def find_all(self, text):
        """text 안에 등장하는 키워드 집합을 반환한다."""
        found = set()
        if not text or not self.keywords:
            return found
        state = 0
        for char in text:
            while state and char not in self._goto[state]:
                state = self._fail[state]
            state = self._goto[state].get(char, 0)
            if self._output[state]:
                found |= self._output[state]
                if len(found) == len(self.keywords):
                    break
        return found

    def contains_any(self, text):
        if not text or not self.keywords:
            return False
        state = 0
        for char in text:
            while state and char not in self._goto[state]:
                state = self._fail[state]
            state = self._goto[state].get(char, 0)
            if self._output[state]:
                return True
        return False
