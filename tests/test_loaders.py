"""
Tests for the Course Detail and Related-Course Loaders.
=======================================================

Tests for:
- settle_all: partitioning of outcomes
- CourseDetailLoader: partial failure, distinct ids, order
- RelatedCourseLoader: join on id_course, dropped items, failures
"""

import pytest

from tests.conftest import entry


def entries(*item_ids):
    from docebo_source.shared.schemas import CatalogEntry

    return [CatalogEntry.model_validate(entry(i)) for i in item_ids]


def details(*item_ids):
    from docebo_source.shared.schemas import CourseDetail

    return [CourseDetail(id=i, slug_name=f"course-{i}") for i in item_ids]


# ─────────────────────────────────────────────────────────────────────────────
# Settle-all Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSettleAll:
    """Tests for the settle_all combinator."""

    async def test_partitions_successes_and_failures(self):
        """Test that entry errors are collected per key."""
        from docebo_source.ingestion.loaders import settle_all
        from docebo_source.shared.errors import FetchError

        async def task(key):
            if key == "b":
                raise FetchError(f"/courses/{key}", 3)
            return key.upper()

        settled = await settle_all(["a", "b", "c"], task)

        assert settled.successes == ["A", "C"]
        assert list(settled.failures) == ["b"]

    async def test_unexpected_errors_propagate(self):
        """Test that programming errors are not swallowed."""
        from docebo_source.ingestion.loaders import settle_all

        async def task(key):
            raise KeyError(key)

        with pytest.raises(KeyError):
            await settle_all(["a"], task)


# ─────────────────────────────────────────────────────────────────────────────
# Course Detail Loader Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCourseDetailLoader:
    """Tests for CourseDetailLoader.load."""

    async def test_loads_each_course(self, api, fetcher, sample_course_data):
        """Test that every entry yields its course detail."""
        from docebo_source.ingestion.loaders import CourseDetailLoader

        api.add_course(10, **{k: v for k, v in sample_course_data.items() if k != "id"})
        api.add_course(11, slug_name="advanced")

        loaded = await CourseDetailLoader(fetcher).load(entries(10, 11))

        assert [d.key for d in loaded] == ["10", "11"]
        assert loaded[0].uidCourse == "E-ABC123"
        assert loaded[1].name is None

    async def test_failure_does_not_abort_others(self, api, fetcher):
        """Test that one failing course is excluded and recorded."""
        from docebo_source.ingestion.loaders import CourseDetailLoader

        api.add_course(10, slug_name="a")
        api.add_course(12, slug_name="c")
        api.failing.add("/learn/v1/courses/11")

        loader = CourseDetailLoader(fetcher)
        loaded = await loader.load(entries(10, 11, 12))

        assert [d.key for d in loaded] == ["10", "12"]
        assert list(loader.failures) == ["11"]

    async def test_invalid_detail_is_excluded(self, api, fetcher):
        """Test that a detail without an id counts as a failure."""
        from docebo_source.ingestion.loaders import CourseDetailLoader

        api.courses["10"] = {"slug_name": "no-id"}

        loader = CourseDetailLoader(fetcher)
        loaded = await loader.load(entries(10))

        assert loaded == []
        assert "10" in loader.failures

    async def test_duplicate_entries_fetched_once(self, api, fetcher):
        """Test that an item listed in two catalogs is fetched once."""
        from docebo_source.ingestion.loaders import CourseDetailLoader

        api.add_course(10, slug_name="a")

        loaded = await CourseDetailLoader(fetcher).load(entries(10, 10))

        assert len(loaded) == 1
        assert api.paths("/learn/v1/courses/10") == ["/learn/v1/courses/10"]


# ─────────────────────────────────────────────────────────────────────────────
# Related-Course Loader Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestRelatedCourseLoader:
    """Tests for RelatedCourseLoader.load."""

    async def test_items_get_slug_of_matching_course(self, api, fetcher):
        """Test that related items are joined to details by id_course."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.add_related(10, 11)

        lists = await RelatedCourseLoader(fetcher).load(entries(10), details(10, 11))

        assert len(lists) == 1
        assert lists[0].id == "10"
        assert lists[0].items[0].slug == "course-11"
        assert lists[0].items[0].to_record() == {
            "id_course": 11,
            "slug": "course-11",
            "name": "Course 11",
        }

    async def test_unknown_course_is_dropped(self, api, fetcher):
        """Test that an item matching no detail is left out."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.add_related(10, 10, 99, 11)

        lists = await RelatedCourseLoader(fetcher).load(entries(10), details(10, 11))

        assert [item.key for item in lists[0].items] == ["10", "11"]

    async def test_slug_on_item_is_kept(self, api, fetcher):
        """Test that a slug already on the related item wins over the detail slug."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.related["10"] = [
            {"id_course": 11, "slug": "raw-slug"},
            {"id_course": 12},
        ]

        lists = await RelatedCourseLoader(fetcher).load(entries(10), details(11, 12))

        assert [item.slug for item in lists[0].items] == ["raw-slug", "course-12"]

    async def test_invalid_item_is_dropped(self, api, fetcher):
        """Test that an item without id_course is dropped, not the whole list."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.related["10"] = [{"id_course": 11}, {"name": "no id"}]

        loader = RelatedCourseLoader(fetcher)
        lists = await loader.load(entries(10), details(11))

        assert len(lists) == 1
        assert [item.key for item in lists[0].items] == ["11"]
        assert loader.failures == {}

    async def test_string_and_int_ids_join(self, api, fetcher):
        """Test that "11" in the related list matches course id 11."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.add_related(10, "11")

        lists = await RelatedCourseLoader(fetcher).load(entries(10), details(11))

        assert lists[0].items[0].slug == "course-11"

    async def test_page_size_is_sent(self, api, fetcher):
        """Test that the related request carries the configured page size."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        await RelatedCourseLoader(fetcher, page_size=3).load(entries(10), details(10))

        assert api.requests == [("/learn/v1/courses/10/by_category", {"page_size": "3"})]

    async def test_failure_is_excluded(self, api, fetcher):
        """Test that a failing related fetch only loses that entry."""
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        api.add_related(10, 11)
        api.failing.add("/learn/v1/courses/11/by_category")

        loader = RelatedCourseLoader(fetcher)
        lists = await loader.load(entries(10, 11), details(10, 11))

        assert [related.id for related in lists] == ["10"]
        assert list(loader.failures) == ["11"]

    async def test_missing_items_list_is_a_failure(self, api, fetcher):
        """Test that a body without an items list excludes the entry."""
        import httpx

        from docebo_source.ingestion.fetcher import ResilientFetcher
        from docebo_source.ingestion.loaders import RelatedCourseLoader

        def handler(request):
            return httpx.Response(200, json={"data": {"total": 0}})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        broken = ResilientFetcher(fetcher.base_url, max_retries=0, initial_delay=0, client=client)

        loader = RelatedCourseLoader(broken)
        lists = await loader.load(entries(10), details(10))

        assert lists == []
        assert "10" in loader.failures
