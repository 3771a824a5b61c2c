import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple

DEFAULT_QUESTIONS_FILE = Path(__file__).resolve().parents[2] / 'data' / 'questions.json'


class QuestionBankError(ValueError):
    """Raised when question data is malformed or names an unknown service."""


@dataclass(frozen=True)
class Question:
    prompt: str
    correct_answer: str
    explanation: str = ''

    def to_dict(self, include_answer: bool = False) -> dict:
        data = {'prompt': self.prompt}
        if include_answer:
            data['correct_answer'] = self.correct_answer
            data['explanation'] = self.explanation
        return data


def _question_from_mapping(raw: Mapping, position: int) -> Question:
    # Accept both snake_case and the camelCase keys used by the web client
    prompt = raw.get('prompt') or raw.get('question')
    answer = raw.get('correct_answer') or raw.get('correctAnswer')
    if not prompt or not answer:
        raise QuestionBankError(f'Question {position + 1} needs a prompt and a correct answer')
    return Question(prompt=str(prompt), correct_answer=str(answer), explanation=str(raw.get('explanation') or ''))


class QuestionBank:
    """Ordered, immutable list of quiz items.

    When ``service_ids`` is given, every question's correct answer must be a
    member of that closed set.
    """

    def __init__(self, questions: Iterable[Question], service_ids: Optional[Sequence[str]] = None):
        self._questions: Tuple[Question, ...] = tuple(questions)
        self._service_ids: Optional[Tuple[str, ...]] = tuple(service_ids) if service_ids else None
        if self._service_ids is not None:
            for idx, q in enumerate(self._questions):
                if q.correct_answer not in self._service_ids:
                    raise QuestionBankError(
                        f"Question {idx + 1} answer '{q.correct_answer}' is not one of {list(self._service_ids)}"
                    )

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping], service_ids: Optional[Sequence[str]] = None) -> 'QuestionBank':
        return cls((_question_from_mapping(raw, i) for i, raw in enumerate(items)), service_ids=service_ids)

    @classmethod
    def from_json_file(cls, path, service_ids: Optional[Sequence[str]] = None) -> 'QuestionBank':
        try:
            with open(path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise QuestionBankError(f'Could not load questions from {path}: {exc}') from exc
        if isinstance(data, Mapping):
            data = data.get('questions', [])
        if not isinstance(data, list):
            raise QuestionBankError(f'{path} must contain a list of questions')
        return cls.from_dicts(data, service_ids=service_ids)

    @classmethod
    def default(cls, service_ids: Optional[Sequence[str]] = None) -> 'QuestionBank':
        return cls.from_json_file(DEFAULT_QUESTIONS_FILE, service_ids=service_ids)

    @property
    def service_ids(self) -> Optional[Tuple[str, ...]]:
        return self._service_ids

    def is_known_service(self, service_id: str) -> bool:
        if self._service_ids is None:
            return True
        return service_id in self._service_ids

    def __len__(self) -> int:
        return len(self._questions)

    def __getitem__(self, index: int) -> Question:
        return self._questions[index]

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)
