"""Precompiled question-indicative patterns and lexicons.

Shared read-only state for the streaming detector and the question refiner.
Text is expected to be lower-cased by the caller where English words matter.
"""

import re

# Discourse particles and hesitation markers with no propositional content
FILLER_WORDS = frozenset([
    'えー', 'あー', 'うー', 'んー', 'そのー', 'あのー', 'えーっと', 'あーと',
    'まあ', 'なんか', 'ちょっと', 'やっぱり', 'やっぱ', 'だから', 'でも',
    'うん', 'はい', 'そう', 'ですね', 'ですが', 'ただ', 'まず', 'それで',
    'というか', 'てか', 'なので', 'けど', 'けれど', 'しかし',
    'ー', '〜', 'う〜ん', 'え〜', 'あ〜', 'そ〜', 'ん〜',
    'じゃあ', 'では', 'それでは', 'さて', 'ちなみに', 'ところで', 'えっと', 'えと',
    'あの', 'その', 'とりあえず', 'まぁ', 'まぁその', 'なんていうか',
])

QUESTION_STARTERS = (
    'どう', 'どの', 'どこ', 'いつ', 'なぜ', 'なん', '何', 'だれ', '誰',
    'どちら', 'どれ', 'いくら', 'いくつ', 'どのよう', 'どんな',
    'どうして', 'どうやって', 'どういう', 'どうすれば', 'どうなる',
    'なにが', 'なにを', 'なにで', 'なにに', 'なにから',
    'いつから', 'いつまで', 'いつごろ', 'いつ頃',
    'どこで', 'どこに', 'どこから', 'どこまで',
    'だれが', 'だれを', 'だれに', 'だれと',
    '誰が', '誰を', '誰に', '誰と',
)

# Discourse connectors that usually introduce a follow-up question
CONNECTORS = ('それから', 'あと', '次に', 'つぎに')

_ENGLISH_QUESTION_WORDS = r'\b(?:what|how|why|when|where|who|which|can|could|should|would|will)\b'

QUESTION_PATTERNS = (
    # Interrogative starters
    re.compile(r'どう(?:して|やって|いう|すれば|なる)?'),
    re.compile(r'どの'),
    re.compile(r'どこ(?:で|に|から|まで)?'),
    re.compile(r'いつ(?:から|まで|頃|ごろ)?'),
    re.compile(r'なぜ'),
    re.compile(r'なん'),
    re.compile(r'何(?:が|を|で|に|の|から)?'),
    re.compile(r'(?:だれ|誰)(?:が|を|に|と)?'),
    re.compile(r'どちら|どれ|いくら|いくつ|どんな'),
    # Question endings
    re.compile(r'(?:ですか|ますか|でしょうか|ませんか|かしら|のか|んですか|んでしょうか)'),
    # Polite requests
    re.compile(r'教えて(?:ください|くれ|もらえ|いただけ)'),
    re.compile(r'お聞かせ(?:ください|いただけ)'),
    re.compile(r'お願い(?:します|できます|してもいい)'),
    re.compile(r'(?:いただけ|もらえ|くれ)(?:ます|ません)か'),
    re.compile(r'(?:教えて|お聞かせ|お願い|いただけ|もらえ|くれ)[。?？]?$'),
    re.compile(_ENGLISH_QUESTION_WORDS, re.IGNORECASE | re.ASCII),
)

# Starters need a following particle so a half-spoken word does not fire.
# English words use ASCII word boundaries so they also match next to kana.
STREAMING_PATTERNS = (
    re.compile(r'どう(?:です|でしょう|思い|考え|やって|すれば|なって|いう)'),
    re.compile(r'何(?:が|を|で|に|の|から|まで|という|について)'),
    re.compile(r'いつ(?:から|まで|頃|ごろ|の|に|は|も)'),
    re.compile(r'どこ(?:で|に|から|まで|の|へ|が)'),
    re.compile(r'(?:だれ|誰)(?:が|を|に|の|と|から)'),
    re.compile(r'なぜ(?:なら|か|です|でしょう)'),
    re.compile(r'どちら(?:が|を|に|の|へ|から)'),
    re.compile(r'どれ(?:が|を|に|の|ほど|くらい)'),
    re.compile(r'いくら(?:で|です|か|くらい)'),
    re.compile(r'いくつ(?:か|の|ある|です)'),
    re.compile(r'どんな(?:もの|こと|感じ|風|人)'),
    re.compile(r'(?:ですか|ますか|でしょうか|ませんか|かしら|のか|んですか|んでしょうか)(?:[？?。\s]|$)'),
    re.compile(r'教えて(?:ください|くれ|もらえ|いただけ)'),
    re.compile(r'お聞かせ(?:ください|いただけ)'),
    re.compile(r'お願い(?:します|できます|してもいい)'),
    re.compile(r'(?:いただけ|もらえ|くれ)(?:ます|ません)か'),
    re.compile(r'\b(?:what|how|why|when|where|who|which|can|could|should|would|will'
               r'|is|are|do|does|did)\b', re.IGNORECASE | re.ASCII),
)

# Plain substrings for the lightweight recent-activity signal
QUICK_HINT_PATTERNS = (
    'どう', 'どの', 'どこ', 'いつ', 'なぜ', 'なん', '何', 'だれ', '誰',
    'どちら', 'どれ', 'いくら', 'いくつ', 'どんな',
    'ですか', 'ますか', 'でしょうか', 'ませんか', 'か？', 'か。',
    'かしら', 'のか', 'んですか', 'んでしょうか',
    '教えて', 'お聞かせ', 'お願い', 'いただけ', 'もらえ', 'くれ',
    'what', 'how', 'why', 'when', 'where', 'who', 'which',
)

QUESTION_MARK_END = re.compile(r'[?？]$')
QUESTION_ENDING = re.compile(r'(?:ですか|ますか|でしょうか|か)$')
POLITE_REQUEST_ENDING = re.compile(
    r'(?:教えてください|お聞かせください|お願いします|お願いできますか|いただけますか'
    r'|頂けますか|いただけませんか|てもらえますか|てくれますか|てください)$'
)

SENTENCE_SPLIT = re.compile(r'\n+|[！？!。]')
QUESTION_MARK_SPLIT = re.compile(r'[？?]')
EDGE_SEPARATORS = re.compile(r"^[、\s]+|[、\s]+$")

# "〜について…ですか" keeps its topic phrase as part of the question
TOPIC_RETAINED = re.compile(r'について.*(?:ですか|ますか|でしょうか|か|[?？]$)')
LEADING_PREFACE = re.compile(
    r'^(?:じゃあ|では|それでは|さて|ちなみに|ところで|えっと|えと|あの|その|とりあえず'
    r'|まぁ|まぁその|なんていうか|まず|えー|あー|うー|そのー|えーっと)[\s、,]+'
)

TOKEN_SPLIT = re.compile(r'[\s、。！？]+')
TRAILING_PUNCTUATION = re.compile(r'[、。！？\s]*$')
TRAILING_POLITENESS = re.compile(r'\s*(?:です|ます|だ|である|でしょう|かな|よね)?\s*$')
LEADING_LATIN = re.compile(r'[a-zA-Z]')


def looks_like_question(text: str) -> bool:
    """Heuristic check for interrogative structure."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in QUESTION_PATTERNS)


def contains_question_starter(text: str) -> bool:
    return any(starter in text for starter in QUESTION_STARTERS)


def has_question_ending(text: str) -> bool:
    """True for text ending in a question mark, a question particle or a polite request."""
    return bool(
        QUESTION_MARK_END.search(text)
        or QUESTION_ENDING.search(text)
        or POLITE_REQUEST_ENDING.search(text)
    )
