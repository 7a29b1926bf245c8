"""
Health dimension registry.

Inactive dimensions are left out of new aggregations but stay resolvable by
id, since historical sessions may reference dimensions that were switched
off later.
"""

from typing import Dict, Iterable, Iterator, List

from ..models.records import Dimension


UNKNOWN_DIMENSION = Dimension(
    id="unknown",
    name="Unknown dimension",
    description="This dimension is no longer configured",
    is_active=False,
)


class DimensionRegistry:
    """Ordered, immutable collection of health dimensions."""

    def __init__(self, dimensions: Iterable[Dimension] = ()):
        self._dimensions: Dict[str, Dimension] = {}
        for dimension in dimensions:
            if dimension.id in self._dimensions:
                raise ValueError(f"Duplicate dimension id: {dimension.id}")
            self._dimensions[dimension.id] = dimension

    def list_active_dimensions(self) -> List[Dimension]:
        """Active dimensions in insertion order."""
        return [d for d in self._dimensions.values() if d.is_active]

    def get_dimension(self, dimension_id: str) -> Dimension:
        """Look up a dimension; unknown ids resolve to UNKNOWN_DIMENSION."""
        return self._dimensions.get(dimension_id, UNKNOWN_DIMENSION)

    def contains(self, dimension_id: str) -> bool:
        return dimension_id in self._dimensions

    def weights(self) -> Dict[str, float]:
        return {d.id: d.weight for d in self._dimensions.values()}

    def with_dimension(self, dimension: Dimension) -> "DimensionRegistry":
        """
        Return a new registry with `dimension` replacing the entry of the same
        id, or appended when the id is new.
        """
        updated = dict(self._dimensions)
        updated[dimension.id] = dimension
        return DimensionRegistry(updated.values())

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self._dimensions.values())

    def __len__(self) -> int:
        return len(self._dimensions)

    def __repr__(self) -> str:
        return f"DimensionRegistry({len(self)} dimensions, {len(self.list_active_dimensions())} active)"


DEFAULT_DIMENSIONS = DimensionRegistry([
    Dimension(
        id="mission",
        name="Mission",
        description="Do we know why we are here and are we excited about it?",
        good_description="We know exactly why we are here, and we are really excited about it",
        bad_description="We have no idea why we are here, there is no high level picture or focus",
    ),
    Dimension(
        id="value",
        name="Delivering Value",
        description="Are we delivering value to our customers?",
        good_description="We deliver great stuff! We're proud of it and our stakeholders are really happy",
        bad_description="We deliver crap. We feel ashamed to deliver it. Our stakeholders hate us",
    ),
    Dimension(
        id="speed",
        name="Speed",
        description="How quickly do we get stuff done?",
        good_description="We get stuff done really quickly. No waiting, no delays",
        bad_description="We never seem to get done with anything. We keep getting stuck or interrupted",
    ),
    Dimension(
        id="fun",
        name="Fun",
        description="Do we enjoy working together?",
        good_description="We love going to work, and have great fun working together",
        bad_description="Boooooooring",
    ),
    Dimension(
        id="health",
        name="Health of Codebase",
        description="How healthy is our code?",
        good_description="We're proud of the quality of our code! It is clean, easy to read, and has great test coverage",
        bad_description="Our code is a pile of dung, and technical debt is raging out of control",
    ),
    Dimension(
        id="learning",
        name="Learning",
        description="Are we learning new things?",
        good_description="We're learning lots of interesting stuff all the time!",
        bad_description="We never have time to learn anything",
    ),
    Dimension(
        id="support",
        name="Support",
        description="Do we get the help we ask for?",
        good_description="We always get great support and help when we ask for it!",
        bad_description="We keep getting stuck because we can't get the support and help that we ask for",
    ),
    Dimension(
        id="pawns",
        name="Pawns or Players",
        description="Are we in control of our own destiny?",
        good_description="We are in control of our own destiny! We decide what to build and how to build it",
        bad_description="We are just pawns in a game of chess, with no influence over what we build or how we build it",
    ),
    Dimension(
        id="release",
        name="Easy to Release",
        description="How easy is it to release our work?",
        good_description="Releasing is simple, safe, painless and mostly automated",
        bad_description="Releasing is risky, painful, lots of manual work, and takes forever",
    ),
    Dimension(
        id="process",
        name="Suitable Process",
        description="Does our way of working fit us?",
        good_description="Our way of working fits us perfectly",
        bad_description="Our way of working sucks",
    ),
    Dimension(
        id="teamwork",
        name="Teamwork",
        description="How well do we work together as a team?",
        good_description="We are a tight-knit team that works together really well",
        bad_description="We are a bunch of individuals that neither know nor care about what the other people in the team are doing",
    ),
])
