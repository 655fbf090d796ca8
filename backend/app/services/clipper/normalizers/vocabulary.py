"""
Normalizer Vocabulary

정규화 규칙이 참조하는 단어/패턴 목록입니다.
새 노이즈 문구를 추가할 때는 이 파일만 수정하면 됩니다.
"""

# ─────────────────────────────────────────────────────────────────────────────
# 공통: 링크 라벨
# ─────────────────────────────────────────────────────────────────────────────

# [label](url)에서 라벨이 아래 중 하나면 링크 전체를 삭제 (대소문자 무시)
LINK_NOISE_LABELS = frozenset(
    {
        "",
        "링크",
        "link",
        "로그인",
        "log in",
        "read more",
        "learn more",
        "click here",
        "더보기",
        "자세히",
    }
)

# Threads 전용 추가 라벨 (정규식)
THREADS_LINK_NOISE_PATTERNS = (
    r"^더 보기$",
    r"^Thread\s*={3,}",
    r"^\d+/\d+/\d+$",  # 11/22/25 형식의 날짜
)
# 짧은 사용자명 라벨 (@user, user_name)
THREADS_USERNAME_LABEL_PATTERN = r"^@?\w+$"
THREADS_USERNAME_LABEL_MAX_LENGTH = 20

# ─────────────────────────────────────────────────────────────────────────────
# 공통: JSON/프롬프트 블록
# ─────────────────────────────────────────────────────────────────────────────

JSON_PROMPT_MARKERS = ('"style_mode"', '"negative_prompt"')

THREADS_JSON_PROMPT_MARKERS = JSON_PROMPT_MARKERS + (
    '"render_intent"',
    '"aesthetic_controls"',
)

# ─────────────────────────────────────────────────────────────────────────────
# 일반 웹: 네비게이션 / 푸터
# ─────────────────────────────────────────────────────────────────────────────

# 짧은 줄에 포함되면 메뉴/카테고리 항목으로 보는 단어 (한국어: 부분 일치)
NAV_KEYWORDS_KO = (
    "홈",
    "메뉴",
    "카테고리",
    "전체보기",
    "로그인",
    "로그아웃",
    "회원가입",
    "검색",
    "구독",
    "공지사항",
    "이전글",
    "다음글",
    "목록",
    "사이트맵",
    "고객센터",
    "이용약관",
    "개인정보처리방침",
    "뉴스레터",
    "공유하기",
    "바로가기",
    "인기글",
    "최신글",
    "태그",
)

# 영어: 단어 경계 일치
NAV_KEYWORDS_EN = (
    "home",
    "menu",
    "category",
    "categories",
    "login",
    "log in",
    "logout",
    "sign in",
    "sign up",
    "register",
    "subscribe",
    "search",
    "about",
    "about us",
    "contact",
    "newsletter",
    "share",
    "tags",
    "archive",
    "archives",
    "next",
    "previous",
    "privacy",
    "terms",
    "sitemap",
    "popular",
    "trending",
    "latest",
)

# 저작권/권리/연락처 문구
FOOTER_PATTERNS = (
    r"©",
    r"\(c\)\s*\d{4}",
    r"\bcopyright\b",
    r"\ball rights reserved\b",
    r"무단\s*전재",
    r"재배포\s*금지",
    r"저작권자",
    r"\bcontact us\b",
    r"사업자\s*등록\s*번호",
    r"통신판매업\s*신고",
    r"대표\s*전화",
    r"^문의\s*[:：]",
)

# ─────────────────────────────────────────────────────────────────────────────
# Threads: UI 문구
# ─────────────────────────────────────────────────────────────────────────────

THREADS_CHROME_LINE_PATTERNS = (
    r"^Translate[ \t]*$",
    r"^-?Author$",
    r"^Report a problem.*$",
    r"^Related threads.*$",
    r"^Log in to see.*$",
    r"^View all \d+ replies.*$",
    r"^No photo description available.*$",
    r"^May be an image of.*$",
    r"^May be a.*image.*$",
    r"^profile picture.*$",
    r"^Sorry, we're having trouble.*$",
)

# 본문/댓글 구분용 표식
COMMENTS_SECTION_MARKER = "[[[COMMENTS_SECTION]]]"
COMMENT_SPLIT_MARKER = "[[[COMMENT_SPLIT]]]"

# 렌더러 원본 텍스트의 댓글 헤더 (Comments (12))
COMMENTS_HEADER_PATTERN = r"Comments?\s*\(\d+\)"

# Instagram/Facebook CDN 호스트
CDN_HOST_PATTERNS = (
    r"https?://scontent[^\s]+",
    r"https?://[^\s]+\.cdninstagram\.com[^\s]*",
    r"https?://[^\s]+\.fbcdn\.net[^\s]*",
)

# ─────────────────────────────────────────────────────────────────────────────
# Naver Blog: UI 문구
# ─────────────────────────────────────────────────────────────────────────────

# 줄 안 어디서든 제거하는 문구
NAVER_CHROME_PHRASES = (
    r"https?://[^\s]+",
    r"이웃추가",
    r"구독하기",
    r"블로그 홈",
    r"블로그로 돌아가기",
    r"포스트 목록",
    r"이전 포스트",
    r"다음 포스트",
    r"블로그 메뉴",
    r"최근 포스트",
    r"내 블로그",
    r"네이버 블로그",
    r"N Pay",
    r"스마트스토어",
    r"(?i:(?<![a-z])naver(?![a-z]))",
    r"맨\s*위로",
    r"(?<![A-Za-z])TOP(?![A-Za-z])",
    r"첨부파일",
    r"공감\s*\d+",
    r"댓글\s*\d+",
    r"좋아요\s*\d+",
)

# 한 줄 전체가 이 단어일 때만 제거 (본문에서도 흔히 쓰이는 단어)
NAVER_CHROME_WORDS = (
    "프로필",
    "공지사항",
    "글쓰기",
    "통계",
    "관리",
    "로그인",
    "공감",
    "댓글",
    "좋아요",
)

# 본문 시작 전 네비게이션 단독 줄
NAVER_NAV_WORDS = ("이전", "다음", "목록", "홈", "검색", "메뉴")
