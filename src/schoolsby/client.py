"""SchoolsByClient - public operations: fetch a page, hand it to its extractor.

Every method either returns the extracted records or raises one of the
classified errors from src.schoolsby.errors.
"""

from src.schoolsby.aggregation import JournalWalk
from src.schoolsby.config import SchoolsByConfig, get_config
from src.schoolsby.errors import SchoolsByError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import (
    BellSchedule,
    ClassTransfer,
    Credentials,
    Lesson,
    Pupil,
    PupilOrder,
    SchoolClass,
    Subgroup,
    Timetable,
    TwoShiftsTimetable,
    User,
)
from src.schoolsby.pages.bells import BellsPage
from src.schoolsby.pages.journal import JournalPage
from src.schoolsby.pages.parent import ParentProfilePage
from src.schoolsby.pages.school_class import (
    ClassEditPage,
    ClassPage,
    ClassPupilsEditPage,
    ClassPupilsOrderPage,
    ClassPupilsPage,
    ClassSubgroupsPage,
)
from src.schoolsby.pages.teacher import TeacherProfilePage
from src.schoolsby.pages.timetable import ClassTimetablePage, TeacherTimetablePage
from src.schoolsby.pages.user import PupilProfilePage, UserProfilePage
from src.schoolsby.session import Page, SessionGateway
from src.schoolsby.transport import Transport

log = get_logger(__name__)


class SchoolsByClient:
    """Entry point for all Schools.by operations.

    Owns a Transport unless one is passed in; close() (or leaving a with
    block) releases it.
    """

    def __init__(
        self,
        config: SchoolsByConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.config = config or (transport.config if transport else get_config())
        self._owns_transport = transport is None
        self.transport = transport or Transport(self.config)
        self.gateway = SessionGateway(self.transport)

    def close(self) -> None:
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "SchoolsByClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _fetch(self, url_path: str, credentials: Credentials | None, **ids) -> Page:
        return self.gateway.fetch(url_path.format(**ids), credentials)

    # Authentication

    def login(self, username: str, password: str) -> Credentials:
        return self.gateway.login(username, password)

    def check_cookies(self, credentials: Credentials) -> bool:
        return self.gateway.check_cookies(credentials)

    def get_user_id(self, credentials: Credentials) -> int:
        return self.gateway.get_user_id(credentials)

    # Users

    def get_user(self, user_id: int, credentials: Credentials) -> User:
        page = self._fetch(UserProfilePage.URL_PATH, credentials, user_id=user_id)
        return UserProfilePage(page.text, page.url, path=page.path).extract(user_id)

    def get_pupil_class(self, pupil_id: int, credentials: Credentials) -> SchoolClass:
        """Class of a pupil. Makes two requests: pupil profile, then class page."""
        page = self._fetch(PupilProfilePage.URL_PATH, credentials, pupil_id=pupil_id)
        class_id = PupilProfilePage(page.text, path=page.path).class_id()
        return self.get_class(class_id, credentials)

    def get_parent_pupils(self, parent_id: int, credentials: Credentials) -> list[Pupil]:
        page = self._fetch(ParentProfilePage.URL_PATH, credentials, parent_id=parent_id)
        return ParentProfilePage(page.text, path=page.path).extract()

    def get_teacher_class(
        self, teacher_id: int, credentials: Credentials
    ) -> SchoolClass | None:
        """Class the teacher leads, or None when they are not a class teacher."""
        page = self._fetch(TeacherProfilePage.URL_PATH, credentials, teacher_id=teacher_id)
        return TeacherProfilePage(page.text, path=page.path).class_teacher_of(teacher_id)

    def get_teacher_timetable(
        self, teacher_id: int, credentials: Credentials
    ) -> TwoShiftsTimetable:
        page = self._fetch(
            TeacherTimetablePage.URL_PATH, credentials, teacher_id=teacher_id
        )
        return TeacherTimetablePage(page.text, path=page.path).extract(teacher_id)

    # Classes

    def get_class(self, class_id: int, credentials: Credentials) -> SchoolClass:
        page = self._fetch(ClassPage.URL_PATH, credentials, class_id=class_id)
        return ClassPage(page.text, path=page.path).extract(class_id)

    def get_pupils(self, class_id: int, credentials: Credentials) -> list[Pupil]:
        page = self._fetch(ClassPupilsPage.URL_PATH, credentials, class_id=class_id)
        return ClassPupilsPage(page.text, path=page.path).extract(class_id)

    def get_pupils_from_edit_form(
        self, class_id: int, credentials: Credentials
    ) -> list[Pupil]:
        page = self._fetch(ClassPupilsEditPage.URL_PATH, credentials, class_id=class_id)
        return ClassPupilsEditPage(page.text, path=page.path).extract(class_id)

    def get_pupils_order(
        self, class_id: int, credentials: Credentials
    ) -> list[PupilOrder]:
        page = self._fetch(ClassPupilsOrderPage.URL_PATH, credentials, class_id=class_id)
        return ClassPupilsOrderPage(page.text, path=page.path).extract()

    def get_class_transfers(
        self, class_id: int, credentials: Credentials
    ) -> dict[int, list[ClassTransfer]]:
        page = self._fetch(ClassPupilsPage.URL_PATH, credentials, class_id=class_id)
        return ClassPupilsPage(page.text, path=page.path).extract_transfers()

    def is_second_shift(self, class_id: int, credentials: Credentials) -> bool:
        page = self._fetch(ClassEditPage.URL_PATH, credentials, class_id=class_id)
        return ClassEditPage(page.text, path=page.path).is_second_shift()

    def get_subgroups(self, class_id: int, credentials: Credentials) -> list[Subgroup]:
        page = self._fetch(ClassSubgroupsPage.URL_PATH, credentials, class_id=class_id)
        return ClassSubgroupsPage(page.text, path=page.path).extract()

    def get_class_timetable(
        self,
        class_id: int,
        credentials: Credentials,
        walk_journals: bool = False,
    ) -> Timetable:
        """Weekly timetable of a class.

        Args:
            walk_journals: Also fetch each referenced journal to fill in the
                teacher ids of every slot.
        """
        page = self._fetch(ClassTimetablePage.URL_PATH, credentials, class_id=class_id)
        timetable = ClassTimetablePage(page.text, path=page.path).extract(class_id)
        if walk_journals:
            timetable = JournalWalk(self.gateway, credentials).attach_teachers(timetable)
        return timetable

    # Journals

    def get_journal_lessons(
        self,
        journal_id: int,
        credentials: Credentials,
        subgroups: dict[int, str] | None = None,
    ) -> list[Lesson]:
        page = self._fetch(JournalPage.URL_PATH, credentials, journal_id=journal_id)
        return JournalPage(page.text, path=page.path).extract_lessons(journal_id, subgroups)

    def get_all_lessons(
        self,
        class_id: int,
        credentials: Credentials,
        subgroups: dict[int, str] | None = None,
    ) -> list[Lesson]:
        """Lessons from every journal of a class.

        When subgroups is None the class subgroups page is read first; if that
        fails, lessons are returned without subgroup ids.
        """
        if subgroups is None:
            try:
                subgroups = {
                    s.id: s.title for s in self.get_subgroups(class_id, credentials)
                }
            except SchoolsByError as e:
                log.warning("subgroups_unavailable", class_id=class_id, error=str(e))
                subgroups = {}
        return JournalWalk(self.gateway, credentials).all_lessons(class_id, subgroups)

    # School

    def get_bells(self, credentials: Credentials | None = None) -> BellSchedule:
        page = self._fetch(BellsPage.URL_PATH, credentials)
        return BellsPage(page.text, path=page.path).extract()
