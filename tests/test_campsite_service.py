import pytest

from src.route_optimizer.models.domain import (
    Campsite,
    CampsiteAccess,
    VehicleProfile,
    VehicleType,
    Waypoint,
    WaypointType,
)
from src.route_optimizer.services.campsites.models import CampsiteOptimizationRequest, CampsiteRequirements
from src.route_optimizer.services.campsites.service import (
    CampsiteOptimizationService,
    campsite_suitability,
    identify_long_segments,
    is_campsite_waypoint,
    vehicle_filter_for,
)
from src.route_optimizer.services.geospatial import point_in_bounds
from src.route_optimizer.services.optimization.models import CampsitePreferences, OptimizationCriteria
from src.route_optimizer.services.optimization.service import RouteOptimizationService
from src.route_optimizer.services.routing.provider import SegmentCostProvider

MOTORHOME = VehicleProfile(type=VehicleType.MOTORHOME, height=3.2, width=2.3, length=7.5, weight=4.0)
MOTORHOME_ACCESS = CampsiteAccess(motorhome=True, caravan=True)


class FakeCampsiteSearch:
    """Returns whichever of its campsites fall inside the requested bounds."""

    def __init__(self, campsites) -> None:
        self.campsites = list(campsites)
        self.requests: list[dict] = []

    async def search_campsites(self, *, bounds, types, amenities=None, vehicle_filter=None, max_results=50):
        self.requests.append(
            {"bounds": bounds, "types": types, "amenities": amenities, "vehicle_filter": vehicle_filter}
        )
        matches = [site for site in self.campsites if point_in_bounds(site.lat, site.lng, bounds)]
        return {"campsites": matches[:max_results]}


class BrokenCampsiteSearch:
    async def search_campsites(self, **kwargs):
        raise ConnectionError("campsite directory offline")


def _optimizer(calculator) -> RouteOptimizationService:
    return RouteOptimizationService(provider=SegmentCostProvider(calculator))


def _equator(waypoint_id: str, lng: float) -> Waypoint:
    return Waypoint(id=waypoint_id, lat=0.0, lng=lng)


def test_unknown_campsite_scores_baseline():
    campsite = Campsite(id=1, name="Basic", lat=0.0, lng=0.0)

    assert campsite_suitability(campsite, CampsiteRequirements()) == pytest.approx(0.5)


def test_vehicle_access_moves_score():
    accessible = Campsite(id=1, name="Open", lat=0.0, lng=0.0, access=MOTORHOME_ACCESS)
    tents_only = Campsite(id=2, name="Tents", lat=0.0, lng=0.0, access=CampsiteAccess(tent=True))

    assert campsite_suitability(accessible, CampsiteRequirements(), MOTORHOME) == pytest.approx(0.8)
    assert campsite_suitability(tents_only, CampsiteRequirements(), MOTORHOME) == pytest.approx(0.1)


def test_vehicle_access_ignored_when_not_required():
    tents_only = Campsite(id=2, name="Tents", lat=0.0, lng=0.0, access=CampsiteAccess(tent=True))
    requirements = CampsiteRequirements(vehicle_compatible_only=False)

    assert campsite_suitability(tents_only, requirements, MOTORHOME) == pytest.approx(0.5)


def test_partial_amenity_match():
    campsite = Campsite(id=1, name="Half", lat=0.0, lng=0.0, amenities={"water": True, "electricity": False})
    requirements = CampsiteRequirements(required_amenities=["water", "electricity"])

    assert campsite_suitability(campsite, requirements) == pytest.approx(0.6)


def test_score_is_clamped_to_one():
    campsite = Campsite(
        id=1,
        name="Deluxe",
        lat=0.0,
        lng=0.0,
        type="caravan_site",
        amenities={"water": True, "showers": True},
        access=MOTORHOME_ACCESS,
        contact={"website": "https://deluxe.example"},
        opening_hours="Mo-Su 08:00-20:00",
    )
    requirements = CampsiteRequirements(required_amenities=["water", "showers"], preferred_types=["caravan_site"])

    assert campsite_suitability(campsite, requirements, MOTORHOME) == 1.0


def test_campsite_waypoints_are_recognised():
    assert is_campsite_waypoint(Waypoint(id="x", lat=0, lng=0, type=WaypointType.CAMPSITE))
    assert is_campsite_waypoint(Waypoint(id="campsite_7", lat=0, lng=0))
    assert not is_campsite_waypoint(Waypoint(id="museum", lat=0, lng=0))


def test_vehicle_filter():
    assert vehicle_filter_for(None) is None
    assert vehicle_filter_for(MOTORHOME) == {
        "height": 3.2,
        "length": 7.5,
        "weight": 4.0,
        "motorhome": True,
        "caravan": False,
    }


def test_long_legs_are_flagged():
    waypoints = [_equator("a", 0.0), _equator("b", 1.0), _equator("c", 6.0)]

    segments = identify_long_segments(waypoints, max_stops_per_day=10, max_daily_km=400)

    assert [(s.start_index, s.end_index) for s in segments] == [(1, 2)]
    assert segments[0].distance_km > 400


def test_every_nth_leg_is_flagged():
    waypoints = [_equator(f"w{i}", 0.1 * i) for i in range(6)]

    segments = identify_long_segments(waypoints, max_stops_per_day=2)

    assert [s.start_index for s in segments] == [2, 4]


def test_single_waypoint_has_no_segments():
    assert identify_long_segments([_equator("a", 0.0)], max_stops_per_day=3) == []


@pytest.mark.asyncio
async def test_suggests_best_accessible_campsite(haversine_calculator):
    good = Campsite(id=1, name="Halfway", lat=0.0, lng=3.0, access=MOTORHOME_ACCESS, contact={"phone": "+49"})
    tents_only = Campsite(id=2, name="Tents", lat=0.05, lng=3.0, access=CampsiteAccess(tent=True))
    far_away = Campsite(id=3, name="Elsewhere", lat=5.0, lng=3.0, access=MOTORHOME_ACCESS)
    search = FakeCampsiteSearch([tents_only, good, far_away])
    service = CampsiteOptimizationService(_optimizer(haversine_calculator), search)

    suggestions = await service.suggest_campsites(
        [_equator("a", 0.0), _equator("b", 6.0)], CampsiteRequirements(), MOTORHOME
    )

    assert len(suggestions) == 1
    assert suggestions[0].campsite.id == 1
    assert suggestions[0].insert_position == 1
    assert suggestions[0].distance_added == pytest.approx(0, abs=1e-6)
    assert suggestions[0].suitability_score == pytest.approx(0.85)
    assert search.requests[0]["types"] == ["campsite", "caravan_site", "aire"]
    assert search.requests[0]["vehicle_filter"]["motorhome"] is True


@pytest.mark.asyncio
async def test_search_failure_yields_no_suggestions(haversine_calculator):
    service = CampsiteOptimizationService(_optimizer(haversine_calculator), BrokenCampsiteSearch())

    suggestions = await service.suggest_campsites([_equator("a", 0.0), _equator("b", 6.0)], CampsiteRequirements())

    assert suggestions == []


@pytest.mark.asyncio
async def test_replaces_poor_campsite_with_better_neighbour(haversine_calculator):
    current = Campsite(id=1, name="Current", lat=0.0, lng=3.0)
    better = Campsite(
        id=2,
        name="Better",
        lat=0.01,
        lng=3.0,
        access=MOTORHOME_ACCESS,
        contact={"website": "https://better.example"},
        opening_hours="24/7",
    )
    search = FakeCampsiteSearch([current, better])
    service = CampsiteOptimizationService(_optimizer(haversine_calculator), search)
    route = [_equator("a", 0.0), current.to_waypoint(), _equator("b", 6.0)]

    updated, replacements = await service.replace_poor_campsites(route, CampsiteRequirements(), MOTORHOME)

    assert [waypoint.id for waypoint in updated] == ["a", "campsite_2", "b"]
    assert len(replacements) == 1
    assert replacements[0].original_waypoint.id == "campsite_1"
    assert replacements[0].new_campsite.id == 2
    assert replacements[0].improvement == pytest.approx(0.4)


@pytest.mark.asyncio
async def test_keeps_campsite_without_clearly_better_alternative(haversine_calculator):
    current = Campsite(id=1, name="Current", lat=0.0, lng=3.0)
    similar = Campsite(id=2, name="Similar", lat=0.01, lng=3.0, contact={"phone": "+49"})
    service = CampsiteOptimizationService(_optimizer(haversine_calculator), FakeCampsiteSearch([current, similar]))
    route = [_equator("a", 0.0), current.to_waypoint(), _equator("b", 6.0)]

    updated, replacements = await service.replace_poor_campsites(route, CampsiteRequirements())

    assert updated == route
    assert replacements == []


@pytest.mark.asyncio
async def test_optimize_with_campsites_uses_daily_distance_preference(haversine_calculator):
    first_night = Campsite(id=1, name="First", lat=0.0, lng=1.0, access=MOTORHOME_ACCESS)
    second_night = Campsite(id=2, name="Second", lat=0.0, lng=4.0, access=MOTORHOME_ACCESS)
    service = CampsiteOptimizationService(
        _optimizer(haversine_calculator), FakeCampsiteSearch([first_night, second_night])
    )
    waypoints = [_equator("a", 0.0), _equator("m", 2.0), _equator("b", 6.0)]
    criteria = OptimizationCriteria(
        vehicle_profile=MOTORHOME,
        campsite_preferences=CampsitePreferences(
            max_distance_between_stops_km=200,
            preferred_stop_duration_hours=12,
        ),
    )

    result = await service.optimize_with_campsites(CampsiteOptimizationRequest(waypoints=waypoints, criteria=criteria))

    suggested = {suggestion.campsite.id for suggestion in result.campsite_integration.suggested_campsites}
    assert suggested == {1, 2}
    assert result.campsite_integration.replaced_waypoints == []
    assert result.campsite_integration.total_campsite_stops == 0
    assert [w.id for w in result.optimization.optimized_route.waypoints] == ["a", "m", "b"]


@pytest.mark.asyncio
async def test_optimize_with_campsites_default_threshold(haversine_calculator):
    first_night = Campsite(id=1, name="First", lat=0.0, lng=1.0, access=MOTORHOME_ACCESS)
    second_night = Campsite(id=2, name="Second", lat=0.0, lng=4.0, access=MOTORHOME_ACCESS)
    service = CampsiteOptimizationService(
        _optimizer(haversine_calculator), FakeCampsiteSearch([first_night, second_night])
    )
    waypoints = [_equator("a", 0.0), _equator("m", 2.0), _equator("b", 6.0)]

    result = await service.optimize_with_campsites(
        CampsiteOptimizationRequest(waypoints=waypoints, criteria=OptimizationCriteria(vehicle_profile=MOTORHOME))
    )

    suggested = [suggestion.campsite.id for suggestion in result.campsite_integration.suggested_campsites]
    assert suggested == [2]


@pytest.mark.asyncio
async def test_optimize_with_campsites_replaces_when_requested(haversine_calculator):
    current = Campsite(id=1, name="Current", lat=0.0, lng=3.0)
    better = Campsite(
        id=2,
        name="Better",
        lat=0.01,
        lng=3.0,
        access=MOTORHOME_ACCESS,
        contact={"phone": "+49"},
        opening_hours="24/7",
    )
    service = CampsiteOptimizationService(_optimizer(haversine_calculator), FakeCampsiteSearch([current, better]))
    request = CampsiteOptimizationRequest(
        waypoints=[_equator("a", 0.0), current.to_waypoint(), _equator("b", 6.0)],
        criteria=OptimizationCriteria(vehicle_profile=MOTORHOME),
        suggest_campsites=False,
        replace_existing_campsites=True,
    )

    result = await service.optimize_with_campsites(request)

    integration = result.campsite_integration
    assert [r.new_campsite.id for r in integration.replaced_waypoints] == [2]
    assert integration.replaced_waypoints[0].original_waypoint.id == "campsite_1"
    assert integration.suggested_campsites == []
    assert integration.total_campsite_stops == 1
    assert [w.id for w in result.optimization.optimized_route.waypoints] == ["a", "campsite_2", "b"]
