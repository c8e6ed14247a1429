"""
Tests for the bundled navigation block, quiz module and Boost theme
"""

import pytest

from lms.utils.exceptions import PluginError


@pytest.fixture
def navigation(plugin_manager):
    return plugin_manager.load_plugin("block", "navigation")


@pytest.fixture
def quiz(plugin_manager):
    return plugin_manager.load_plugin("mod", "quiz")


@pytest.fixture
def boost(plugin_manager):
    return plugin_manager.load_plugin("theme", "boost")


class TestNavigationBlock:

    def test_metadata(self, navigation):
        assert navigation.get_name() == "navigation"
        assert navigation.get_type() == "block"
        assert navigation.get_version() == "2024012400"
        assert navigation.component == "block_navigation"
        assert navigation.is_compatible()

    def test_site_navigation(self, navigation):
        content = navigation.get_content()

        assert [link["key"] for link in content["site"]] == ["dashboard", "courses", "users"]
        assert content["site"][1] == {"key": "courses", "label": "Courses", "url": "/courses"}
        assert "course" not in content

    def test_localized_labels(self, navigation):
        content = navigation.get_content(context={"locale": "de"})

        assert content["site"][1]["label"] == "Kurse"

    def test_course_navigation(self, navigation, db, course):
        db.seed(
            "course_sections",
            {"course_id": course["id"], "name": "General", "position": 0, "is_visible": True},
            {"course_id": course["id"], "name": "Basics", "position": 1, "is_visible": True},
            {"course_id": course["id"], "name": None, "position": 2, "is_visible": True},
            {"course_id": course["id"], "name": "Hidden", "position": 3, "is_visible": False},
        )

        content = navigation.get_content(context={"course_id": course["id"]})

        assert content["course"][0]["url"] == f"/courses/{course['id']}"
        assert [section["label"] for section in content["sections"]] == ["Basics", "Topic 2"]

    def test_section_limit(self, navigation, db, course):
        db.seed("course_sections", *[
            {"course_id": course["id"], "name": f"Week {n}", "position": n, "is_visible": True}
            for n in range(1, 6)
        ])

        content = navigation.get_content({"max_sections": 2}, {"course_id": course["id"]})

        assert [section["label"] for section in content["sections"]] == ["Week 1", "Week 2"]

    def test_unknown_course(self, navigation):
        content = navigation.get_content(context={"course_id": "missing"})

        assert "course" not in content
        assert "sections" not in content

    def test_config_switches(self, navigation, course):
        content = navigation.get_content(
            {"show_site_nav": False, "show_sections": False},
            {"course_id": course["id"]},
        )

        assert list(content) == ["course"]

    def test_api_data(self, navigation):
        data = navigation.get_api_data(context={"locale": "de"})

        assert data["headings"] == {"site": "Website", "course": "Kurs", "sections": "Kursinhalt"}
        assert data["config"]["max_sections"] == 10
        assert "site" in data["navigation"]

    def test_placement_rules(self, navigation):
        assert navigation.get_react_component() == "NavigationBlock"
        assert navigation.get_supported_regions() == ["side-pre", "side-post", "content"]
        assert not navigation.supports_multiple_instances()
        assert navigation.should_show("dashboard", {})
        assert not navigation.should_show("login", {})
        assert not navigation.should_show("register", {})


class TestQuizModule:

    def test_metadata(self, quiz):
        assert quiz.get_icon() == "fa-question-circle"
        assert quiz.get_dependencies() == {"core": 2024011500}
        assert quiz.get_supported_features()["gradebook"] is True
        assert "mod/quiz:attempt" in quiz.get_capabilities()

    def test_add_instance(self, quiz, db, course):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Week 1 quiz", "grade": 50})

        stored = quiz.get_instance(quiz_id)
        assert stored["name"] == "Week 1 quiz"
        assert stored["grade"] == 50
        assert stored["navmethod"] == "free"
        assert stored["attempts"] == 0

    def test_add_instance_uses_site_defaults(self, quiz, course):
        quiz.update_settings({"attempts": 2})

        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz"})

        assert quiz.get_instance(quiz_id)["attempts"] == 2

    def test_add_instance_requires_name(self, quiz, course):
        with pytest.raises(PluginError) as exc:
            quiz.add_instance({"course_id": course["id"]})
        assert exc.value.status_code == 422

    def test_update_instance(self, quiz, course):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz"})

        assert quiz.update_instance(quiz_id, {"name": "Renamed", "course_id": "other"})

        stored = quiz.get_instance(quiz_id)
        assert stored["name"] == "Renamed"
        assert stored["course_id"] == course["id"]

    def test_delete_instance(self, quiz, db, course, student):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz"})
        db.seed("quiz_attempts", {"quiz_id": quiz_id, "user_id": student["id"], "state": "finished"})
        quiz.update_grades(quiz_id, {student["id"]: 80})

        assert quiz.delete_instance(quiz_id)
        assert db.rows("quiz") == []
        assert db.rows("quiz_attempts") == []
        assert db.rows("quiz_grades") == []
        assert not quiz.delete_instance(quiz_id)

    def test_grading_info(self, quiz, course):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz", "grade": 10})

        assert quiz.get_grading_info(quiz_id) == {
            "grade_type": "point",
            "grade_max": 10,
            "grade_min": 0,
            "grade_pass": 6.0,
        }

    def test_update_grades_replaces_previous(self, quiz, db, course, student):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz"})

        quiz.update_grades(quiz_id, {student["id"]: 40})
        quiz.update_grades(quiz_id, {student["id"]: 90})

        grades = db.rows("quiz_grades")
        assert len(grades) == 1
        assert grades[0]["grade"] == 90

    def test_completion_state(self, quiz, db, course, student):
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Quiz"})
        db.seed("quiz_attempts", {"quiz_id": quiz_id, "user_id": student["id"], "state": "inprogress"})

        assert quiz.get_completion_state(quiz_id, student["id"]) == 0

        db.seed("quiz_attempts", {"quiz_id": quiz_id, "user_id": student["id"], "state": "finished"})
        assert quiz.get_completion_state(quiz_id, student["id"]) == 1

    def test_navigation_items(self, quiz):
        assert quiz.get_navigation_items("any") == {
            "view": "View quiz",
            "attempt": "Attempt quiz",
            "results": "View results",
        }

    def test_search(self, quiz, make_course, course):
        other = make_course()
        quiz_id = quiz.add_instance({"course_id": course["id"], "name": "Python basics quiz", "intro": "Loops"})
        quiz.add_instance({"course_id": other["id"], "name": "Python advanced quiz"})

        results = quiz.search("basics")
        assert results == [{"title": "Python basics quiz", "url": f"/mod/quiz/view/{quiz_id}", "content": "Loops"}]

        assert len(quiz.search("python")) == 2
        assert len(quiz.search("python", course_id=other["id"])) == 1


class TestBoostTheme:

    def test_theme_data(self, boost):
        data = boost.get_react_theme_data()

        assert data["name"] == "boost"
        assert data["parent"] is None
        assert data["colors"]["primary"] == "#0f6cbf"
        assert data["breakpoints"] == {"xs": 0, "sm": 576, "md": 768, "lg": 992, "xl": 1200, "xxl": 1400}
        assert data["regions"] == ["side-pre", "side-post"]
        assert data["dark_mode"] is False
        assert data["rtl"] is True

    def test_layouts(self, boost):
        layouts = boost.get_layouts()

        assert layouts["course"]["regions"] == ["side-pre", "side-post"]
        assert layouts["login"]["regions"] == []
        assert layouts["popup"]["options"]["nonavbar"] is True

    def test_brand_colour_and_dark_mode(self, boost):
        boost.update_settings({"brandcolor": "#ff5500", "darkmode": True})

        assert boost.get_colors()["primary"] == "#ff5500"
        assert boost.supports_dark_mode()
