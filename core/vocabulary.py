"""Static Chinese vocabulary seed and seeding helpers."""

import json
import logging
from pathlib import Path

from .config import DEFAULT_DIFFICULTY, DIFFICULTIES
from .errors import ValidationError
from .interfaces import Storage, VOCABULARY

logger = logging.getLogger(__name__)

# (chinese, pinyin, english, difficulty), in study order
SEED_VOCABULARY = [
    ('你好', 'nǐ hǎo', 'hello; hi', 'beginner'),
    ('谢谢', 'xiè xie', 'thank you; thanks', 'beginner'),
    ('再见', 'zài jiàn', 'goodbye; see you again', 'beginner'),
    ('是', 'shì', 'to be; yes', 'beginner'),
    ('不', 'bù', 'no; not', 'beginner'),
    ('我', 'wǒ', 'I; me', 'beginner'),
    ('你', 'nǐ', 'you', 'beginner'),
    ('他', 'tā', 'he; him', 'beginner'),
    ('她', 'tā', 'she; her', 'beginner'),
    ('们', 'men', '(plural marker for pronouns)', 'beginner'),
    ('一', 'yī', 'one; 1', 'beginner'),
    ('二', 'èr', 'two; 2', 'beginner'),
    ('三', 'sān', 'three; 3', 'beginner'),
    ('四', 'sì', 'four; 4', 'beginner'),
    ('五', 'wǔ', 'five; 5', 'beginner'),
    ('六', 'liù', 'six; 6', 'beginner'),
    ('七', 'qī', 'seven; 7', 'beginner'),
    ('八', 'bā', 'eight; 8', 'beginner'),
    ('九', 'jiǔ', 'nine; 9', 'beginner'),
    ('十', 'shí', 'ten; 10', 'beginner'),
    ('人', 'rén', 'person; people', 'beginner'),
    ('大', 'dà', 'big; large', 'beginner'),
    ('小', 'xiǎo', 'small; little', 'beginner'),
    ('好', 'hǎo', 'good; well', 'beginner'),
    ('吃', 'chī', 'to eat', 'beginner'),
    ('喝', 'hē', 'to drink', 'beginner'),
    ('水', 'shuǐ', 'water', 'beginner'),
    ('茶', 'chá', 'tea', 'beginner'),
    ('米饭', 'mǐ fàn', '(cooked) rice', 'beginner'),
    ('的', 'de', '(possessive particle)', 'beginner'),
    ('家', 'jiā', 'home; family', 'beginner'),
    ('学校', 'xué xiào', 'school', 'beginner'),
    ('老师', 'lǎo shī', 'teacher', 'beginner'),
    ('学生', 'xué sheng', 'student', 'beginner'),
    ('朋友', 'péng you', 'friend', 'beginner'),
    ('爸爸', 'bà ba', 'father; dad', 'beginner'),
    ('妈妈', 'mā ma', 'mother; mom', 'beginner'),
    ('儿子', 'ér zi', 'son', 'beginner'),
    ('女儿', 'nǚ ér', 'daughter', 'beginner'),
    ('狗', 'gǒu', 'dog', 'beginner'),
    ('猫', 'māo', 'cat', 'beginner'),
    ('书', 'shū', 'book', 'beginner'),
    ('看', 'kàn', 'to look; to see; to read', 'beginner'),
    ('听', 'tīng', 'to listen; to hear', 'beginner'),
    ('说', 'shuō', 'to speak; to say', 'beginner'),
    ('读', 'dú', 'to read (aloud)', 'beginner'),
    ('写', 'xiě', 'to write', 'beginner'),
    ('去', 'qù', 'to go', 'beginner'),
    ('来', 'lái', 'to come', 'beginner'),
    ('在', 'zài', 'at; in; to be (located)', 'beginner'),
    ('有', 'yǒu', 'to have; there is', 'beginner'),
    ('没有', 'méi yǒu', 'not have; there is not', 'beginner'),
    ('今天', 'jīn tiān', 'today', 'beginner'),
    ('明天', 'míng tiān', 'tomorrow', 'beginner'),
    ('昨天', 'zuó tiān', 'yesterday', 'beginner'),
    ('年', 'nián', 'year', 'beginner'),
    ('月', 'yuè', 'month; moon', 'beginner'),
    ('日', 'rì', 'day; sun', 'beginner'),
    ('中国', 'zhōng guó', 'China', 'beginner'),
    ('汉语', 'hàn yǔ', 'Chinese (language)', 'beginner'),
    ('喜欢', 'xǐ huan', 'to like', 'intermediate'),
    ('觉得', 'jué de', 'to think; to feel', 'intermediate'),
    ('知道', 'zhī dào', 'to know', 'intermediate'),
    ('认识', 'rèn shi', 'to know (a person); to recognize', 'intermediate'),
    ('工作', 'gōng zuò', 'work; job; to work', 'intermediate'),
    ('医生', 'yī shēng', 'doctor', 'intermediate'),
    ('医院', 'yī yuàn', 'hospital', 'intermediate'),
    ('飞机', 'fēi jī', 'airplane', 'intermediate'),
    ('火车站', 'huǒ chē zhàn', 'train station', 'intermediate'),
    ('出租车', 'chū zū chē', 'taxi', 'intermediate'),
    ('天气', 'tiān qì', 'weather', 'intermediate'),
    ('下雨', 'xià yǔ', 'to rain', 'intermediate'),
    ('衣服', 'yī fu', 'clothes', 'intermediate'),
    ('漂亮', 'piào liang', 'pretty; beautiful', 'intermediate'),
    ('便宜', 'pián yi', 'cheap; inexpensive', 'intermediate'),
    ('贵', 'guì', 'expensive', 'intermediate'),
    ('准备', 'zhǔn bèi', 'to prepare; to plan', 'intermediate'),
    ('旅游', 'lǚ yóu', 'to travel; tourism', 'intermediate'),
    ('已经', 'yǐ jīng', 'already', 'intermediate'),
    ('因为', 'yīn wèi', 'because', 'intermediate'),
    ('所以', 'suǒ yǐ', 'so; therefore', 'intermediate'),
    ('虽然', 'suī rán', 'although', 'advanced'),
    ('经验', 'jīng yàn', 'experience', 'advanced'),
    ('环境', 'huán jìng', 'environment', 'advanced'),
    ('发展', 'fā zhǎn', 'to develop; development', 'advanced'),
    ('解决', 'jiě jué', 'to solve; to resolve', 'advanced'),
    ('影响', 'yǐng xiǎng', 'to influence; influence', 'advanced'),
    ('机会', 'jī huì', 'opportunity; chance', 'advanced'),
    ('责任', 'zé rèn', 'responsibility', 'advanced'),
    ('尊重', 'zūn zhòng', 'to respect; respect', 'advanced'),
]


def get_seed_data() -> list[dict]:
    """Built-in vocabulary as seed items."""
    return [
        {'chinese': chinese, 'pinyin': pinyin, 'english': english, 'difficulty': difficulty}
        for chinese, pinyin, english, difficulty in SEED_VOCABULARY
    ]


def load_vocabulary_file(path: str | Path) -> list[dict]:
    """Load seed items from a JSON array of {chinese, pinyin, english, ...} objects."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValidationError(f"Vocabulary file {path} must contain a JSON array")
    return data


def _clean_item(item: dict) -> dict:
    for field in ('chinese', 'pinyin', 'english'):
        if not str(item.get(field) or '').strip():
            raise ValidationError(f"Vocabulary item is missing '{field}': {item}")
    difficulty = item.get('difficulty') or DEFAULT_DIFFICULTY
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty '{difficulty}' for {item['chinese']}")
    return {
        'chinese': item['chinese'].strip(),
        'pinyin': item['pinyin'].strip(),
        'english': item['english'].strip(),
        'difficulty': difficulty,
        'image_url': item.get('image_url') or item.get('imageUrl') or ''
    }


def seed_vocabulary(storage: Storage, items: list[dict] = None) -> int:
    """Insert items whose chinese text is not stored yet, keeping their order.

    Returns the number of words inserted.
    """
    if items is None:
        items = get_seed_data()

    existing = storage.find_many(VOCABULARY)
    known = {row['chinese'] for row in existing}
    next_position = max((row.get('position') or 0 for row in existing), default=-1) + 1

    inserted = 0
    for item in items:
        word = _clean_item(item)
        if word['chinese'] in known:
            continue
        storage.create(VOCABULARY, {**word, 'position': next_position})
        known.add(word['chinese'])
        next_position += 1
        inserted += 1

    logger.info(f"Seeded {inserted} vocabulary words ({len(items) - inserted} already present)")
    return inserted
