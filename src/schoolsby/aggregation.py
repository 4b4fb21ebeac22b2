"""Multi-page extraction: walking journals referenced by other pages.

A JournalWalk lives for exactly one aggregate call. It caches journal id ->
teacher ids so a journal referenced by several timetable slots is fetched
once, and it treats a failing journal as "no data" instead of failing the
whole call.
"""

from src.schoolsby.errors import SchoolsByError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import Credentials, Lesson, Timetable
from src.schoolsby.pages.journal import JournalPage
from src.schoolsby.pages.school_class import ClassLessonsPage
from src.schoolsby.session import SessionGateway

log = get_logger(__name__)


class JournalWalk:
    """Per-call journal cache and the aggregations built on it."""

    def __init__(self, gateway: SessionGateway, credentials: Credentials) -> None:
        self.gateway = gateway
        self.credentials = credentials
        self._teachers: dict[int, frozenset[int]] = {}

    def _journal_page(self, journal_id: int) -> JournalPage:
        page = self.gateway.fetch(
            JournalPage.URL_PATH.format(journal_id=journal_id), self.credentials
        )
        return JournalPage(page.text, path=page.path)

    def resolve_teachers(self, journal_id: int) -> frozenset[int]:
        """Teacher ids of a journal; empty if the journal cannot be read."""
        cached = self._teachers.get(journal_id)
        if cached is not None:
            return cached
        try:
            teachers = self._journal_page(journal_id).teacher_ids()
        except SchoolsByError as e:
            log.warning(
                "journal_walk_failed",
                journal_id=journal_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            teachers = frozenset()
        self._teachers[journal_id] = teachers
        return teachers

    def attach_teachers(self, timetable: Timetable) -> Timetable:
        """Copy of timetable with teacher ids resolved from each slot's journal.

        Slots without a journal keep their teacher set unchanged.
        """
        days = {}
        for day, lessons in timetable.days.items():
            days[day] = tuple(
                lesson.model_copy(
                    update={"teacher_ids": self.resolve_teachers(lesson.journal_id)}
                )
                if lesson.journal_id is not None
                else lesson
                for lesson in lessons
            )
        log.info("journals_walked", journals=len(self._teachers))
        return Timetable(days=days)

    def all_lessons(
        self, class_id: int, subgroups: dict[int, str] | None = None
    ) -> list[Lesson]:
        """Lessons of every journal listed on the class lessons page.

        Journals that fail to load or parse are logged and left out.
        """
        index = self.gateway.fetch(
            ClassLessonsPage.URL_PATH.format(class_id=class_id), self.credentials
        )
        journal_ids = ClassLessonsPage(index.text, path=index.path).journal_ids()

        lessons: list[Lesson] = []
        for journal_id in journal_ids:
            try:
                page = self._journal_page(journal_id)
                lessons.extend(page.extract_lessons(journal_id, subgroups))
            except SchoolsByError as e:
                log.warning(
                    "journal_lessons_failed",
                    journal_id=journal_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            # Computed once by extract_lessons; later resolve_teachers calls hit the cache
            self._teachers.setdefault(journal_id, page.teacher_ids())

        log.info(
            "class_lessons_collected",
            class_id=class_id,
            journals=len(journal_ids),
            lessons=len(lessons),
        )
        return lessons
