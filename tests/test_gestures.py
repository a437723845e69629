import pytest

from inkmap.config import EditorSettings
from inkmap.gestures import GestureState, GestureStateMachine
from inkmap.scene import Edge, SceneGraph, StrokeRegion


def tap(machine, x, y):
    machine.pointer_down(x, y)
    machine.pointer_up(x, y)


def drag(machine, start, *points):
    machine.pointer_down(*start)
    for point in points:
        machine.pointer_move(*point)
    machine.pointer_up(*points[-1])


# ==================== Drawing new nodes ====================

def test_draw_on_empty_surface_creates_node_at_release_point(machine, scene):
    drag(machine, (50, 50), (100, 50), (150, 50))

    assert len(scene) == 1
    node = scene.nodes[0]
    assert node.position == (150.0, 50.0)
    assert node.title == ""
    assert machine.state is GestureState.IDLE


def test_each_draw_gesture_creates_exactly_one_node(machine, scene, settings):
    for i in range(5):
        drag(machine, (i * 500, 0), (i * 500 + 10, 10))

    assert len(scene) == 5
    assert [n.position for n in scene.nodes] == [(i * 500 + 10.0, 10.0) for i in range(5)]
    assert all(n.title == "" for n in scene.nodes)
    assert all((n.width, n.height) == (settings.node_width, settings.node_height)
               for n in scene.nodes)


def test_drawing_stroke_is_transient(machine, scene):
    machine.pointer_down(10, 10)
    machine.pointer_move(20, 20)

    visual = machine.visual_state()
    assert visual.state is GestureState.DRAWING_NEW_NODE
    assert visual.stroke == ((10.0, 10.0), (20.0, 20.0))

    machine.pointer_up(20, 20)
    node = scene.nodes[0]
    assert node.title_strokes == [] and node.content_strokes == []
    assert machine.visual_state().stroke == ()


def test_pointer_down_on_empty_surface_clears_selection(machine, scene):
    node = scene.create_node((0, 0))
    tap(machine, 50, 60)
    assert machine.selected_id == node.id

    machine.pointer_down(500, 500)
    assert machine.selected_id is None


# ==================== Icons ====================

def test_pencil_icon_toggles_writing_mode(machine, scene):
    node = scene.create_node((100, 100))

    tap(machine, 260, 115)
    assert node.writing is True
    assert len(scene) == 1
    assert node.position == (100.0, 100.0)

    tap(machine, 260, 115)
    assert node.writing is False


def test_pencil_icon_stays_idle_during_gesture(machine, scene):
    scene.create_node((100, 100))
    machine.pointer_down(260, 115)
    assert machine.state is GestureState.IDLE
    machine.pointer_move(400, 400)
    machine.pointer_up(400, 400)
    assert scene.nodes[0].position == (100.0, 100.0)


def test_clear_icon_empties_strokes(machine, scene):
    node = scene.create_node((100, 100))
    scene.append_stroke(node.id, StrokeRegion.TITLE, ((1, 1),))
    scene.append_stroke(node.id, StrokeRegion.CONTENT, ((2, 2),))

    tap(machine, 260, 200)

    assert node.title_strokes == []
    assert node.content_strokes == []


# ==================== Writing ====================

def test_write_in_title_band(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    drag(machine, (150, 120), (160, 122), (170, 121))

    assert node.title_strokes == [((50.0, 20.0), (60.0, 22.0), (70.0, 21.0))]
    assert node.content_strokes == []


def test_write_in_content_band(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    drag(machine, (150, 170), (160, 180))

    assert node.content_strokes == [((50.0, 70.0), (60.0, 80.0))]
    assert node.title_strokes == []


def test_write_just_below_title_band_goes_to_title(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    tap(machine, 150, 135)

    assert len(node.title_strokes) == 1


def test_write_without_move_commits_single_point_stroke(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    tap(machine, 150, 170)

    assert node.content_strokes == [((50.0, 70.0),)]


def test_writing_mode_does_not_move_or_select(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    drag(machine, (150, 170), (250, 190))

    assert node.position == (100.0, 100.0)
    assert machine.selected_id is None


def test_writing_visual_stroke_is_absolute(machine, scene):
    node = scene.create_node((100, 100))
    node.writing = True

    machine.pointer_down(150, 120)
    machine.pointer_move(155, 125)

    visual = machine.visual_state()
    assert visual.state is GestureState.WRITING_STROKE
    assert visual.stroke == ((150.0, 120.0), (155.0, 125.0))
    assert visual.stroke_region is StrokeRegion.TITLE


# ==================== Select and drag ====================

def test_click_below_threshold_only_selects(machine, scene):
    node = scene.create_node((100, 100))
    other = scene.create_node((400, 100))

    drag(machine, (150, 170), (153, 173), (155, 170))

    assert node.position == (100.0, 100.0)
    assert scene.edges == ()
    assert machine.selected_id == node.id
    assert other.position == (400.0, 100.0)


def test_threshold_must_be_exceeded(machine, scene):
    node = scene.create_node((100, 100))

    machine.pointer_down(150, 170)
    machine.pointer_move(155, 170)
    assert machine.state is GestureState.MAYBE_DRAGGING
    machine.pointer_move(155.5, 170)
    assert machine.state is GestureState.DRAGGING
    assert node.position == (105.5, 100.0)


def test_drag_moves_node_live_and_keeps_selection(machine, scene):
    node = scene.create_node((100, 100))

    machine.pointer_down(110, 140)
    machine.pointer_move(130, 140)
    assert node.position == (120.0, 100.0)
    machine.pointer_move(210, 240)
    assert node.position == (200.0, 200.0)
    machine.pointer_up(210, 240)

    assert node.position == (200.0, 200.0)
    assert scene.edges == ()
    assert machine.selected_id == node.id


def test_drag_onto_other_node_creates_edge(machine, scene):
    n1 = scene.create_node((0, 0))
    n2 = scene.create_node((300, 0))

    drag(machine, (160, 60), (210, 60), (320, 60))

    assert scene.edges == (Edge(n1.id, n2.id),)
    assert len(scene) == 2
    # The dragged node stays where the drag left it
    assert n1.position == (160.0, 0.0)


def test_drag_onto_empty_surface_creates_no_edge(machine, scene):
    node = scene.create_node((0, 0))
    scene.create_node((300, 0))

    drag(machine, (50, 50), (60, 60), (550, 550))

    assert scene.edges == ()
    assert node.position == (500.0, 500.0)
    assert len(scene) == 2


def test_drag_onto_hidden_node_creates_no_edge(machine, scene):
    scene.create_node((0, 0))
    hidden = scene.create_node((300, 0))
    scene.set_visible(hidden.id, False)

    drag(machine, (50, 50), (60, 60), (350, 50))

    assert scene.edges == ()


def test_drop_target_preview(machine, scene):
    n1 = scene.create_node((0, 0))
    n2 = scene.create_node((300, 0))

    machine.pointer_down(50, 50)
    machine.pointer_move(60, 60)
    assert machine.visual_state().drop_target_id is None
    machine.pointer_move(350, 50)

    visual = machine.visual_state()
    assert visual.dragged_id == n1.id
    assert visual.drop_target_id == n2.id

    machine.pointer_up(350, 50)
    assert machine.visual_state().drop_target_id is None


def test_spawn_on_empty_drop_creates_linked_node():
    settings = EditorSettings(spawn_on_empty_drop=True)
    scene = SceneGraph(settings)
    machine = GestureStateMachine(scene, settings)
    node = scene.create_node((0, 0))

    drag(machine, (50, 50), (60, 60), (600, 600))

    assert len(scene) == 2
    spawned = scene.nodes[-1]
    assert spawned.position == (600.0, 600.0)
    assert scene.edges == (Edge(node.id, spawned.id),)


# ==================== Double tap ====================

def test_double_tap_toggles_visibility_once(machine, scene, clock):
    node = scene.create_node((100, 100))

    tap(machine, 150, 170)
    clock.advance(0.2)
    tap(machine, 150, 170)

    assert node.visible is False
    assert machine.selected_id is None


def test_taps_at_window_boundary_do_not_pair(machine, scene, clock):
    node = scene.create_node((100, 100))

    tap(machine, 150, 170)
    clock.advance(0.3)
    tap(machine, 150, 170)
    assert node.visible is True

    # The second tap starts a fresh pair
    clock.advance(0.1)
    tap(machine, 150, 170)
    assert node.visible is False


def test_consumed_pair_does_not_chain(machine, scene, clock):
    node = scene.create_node((100, 100))

    tap(machine, 150, 170)
    clock.advance(0.1)
    tap(machine, 150, 170)
    assert node.visible is False

    scene.set_visible(node.id, True)
    clock.advance(0.1)
    tap(machine, 150, 170)
    assert node.visible is True

    clock.advance(0.1)
    tap(machine, 150, 170)
    assert node.visible is False


def test_taps_on_different_nodes_do_not_pair(machine, scene, clock):
    a = scene.create_node((0, 0))
    b = scene.create_node((300, 0))

    tap(machine, 50, 50)
    clock.advance(0.1)
    tap(machine, 350, 50)

    assert a.visible and b.visible
    assert machine.selected_id == b.id


def test_drag_between_taps_breaks_pair(machine, scene, clock):
    node = scene.create_node((100, 100))

    tap(machine, 150, 170)
    drag(machine, (150, 170), (170, 170), (150, 170))
    clock.advance(0.1)
    tap(machine, 150, 170)

    assert node.visible is True


def test_release_outside_node_is_not_a_tap(machine, scene, clock):
    node = scene.create_node((100, 100))

    for _ in range(2):
        drag(machine, (101, 170), (97, 170))
        clock.advance(0.1)

    assert node.visible is True
    assert node.position == (100.0, 100.0)


def test_release_beyond_threshold_without_move_is_not_a_tap(machine, scene, clock):
    node = scene.create_node((100, 100))

    for _ in range(2):
        machine.pointer_down(150, 170)
        machine.pointer_up(160, 170)
        clock.advance(0.1)

    assert node.visible is True


def test_small_jitter_inside_node_still_pairs(machine, scene, clock):
    node = scene.create_node((100, 100))

    drag(machine, (150, 170), (153, 171))
    clock.advance(0.1)
    drag(machine, (150, 170), (148, 168))

    assert node.visible is False


# ==================== Keyboard ====================

@pytest.mark.parametrize("key", ["Delete", "BackSpace"])
def test_delete_key_removes_selected_node_and_edges(machine, scene, key):
    n = scene.create_node((100, 100))
    other = scene.create_node((400, 100))
    third = scene.create_node((700, 100))
    scene.create_edge(n.id, other.id)
    scene.create_edge(other.id, n.id)
    scene.create_edge(other.id, third.id)

    tap(machine, 150, 170)
    assert machine.key_down(key) is True

    assert scene.get_node(n.id) is None
    assert scene.edges == (Edge(other.id, third.id),)
    assert machine.selected_id is None


def test_delete_without_selection_is_noop(machine, scene):
    scene.create_node((100, 100))
    assert machine.key_down("Delete") is True
    assert len(scene) == 1


def test_other_keys_are_not_consumed(machine, scene):
    scene.create_node((100, 100))
    tap(machine, 150, 170)
    assert machine.key_down("a") is False
    assert len(scene) == 1


def test_delete_after_drag_removes_dragged_node(machine, scene):
    node = scene.create_node((100, 100))
    drag(machine, (150, 170), (250, 170))

    machine.key_down("Delete")

    assert scene.get_node(node.id) is None


def test_delete_during_drag_is_absorbed(machine, scene):
    node = scene.create_node((0, 0))
    target = scene.create_node((300, 0))

    machine.pointer_down(50, 50)
    machine.pointer_move(70, 50)
    machine.key_down("Delete")
    machine.pointer_move(350, 50)
    machine.pointer_up(350, 50)

    assert scene.get_node(node.id) is None
    assert [n.id for n in scene.nodes] == [target.id]
    assert scene.edges == ()
    assert machine.state is GestureState.IDLE


# ==================== Event ordering ====================

def test_move_and_up_without_down_are_noops(machine, scene):
    scene.create_node((100, 100))
    machine.pointer_move(150, 170)
    machine.pointer_up(150, 170)

    assert len(scene) == 1
    assert machine.state is GestureState.IDLE


def test_second_pointer_down_is_ignored_mid_gesture(machine, scene):
    machine.pointer_down(10, 10)
    machine.pointer_down(500, 500)
    assert machine.interaction.start == (10.0, 10.0)
    machine.pointer_up(40, 40)

    assert len(scene) == 1


def test_interaction_state_resets_after_every_gesture(machine, scene):
    node = scene.create_node((100, 100))
    drag(machine, (150, 170), (250, 270))

    interaction = machine.interaction
    assert interaction.state is GestureState.IDLE
    assert interaction.node_id is None
    assert interaction.offset == (0.0, 0.0)
    assert not machine.recorder.active
    # Selection survives for keyboard delete
    assert machine.selected_id == node.id


# ==================== Callbacks ====================

def test_status_messages(machine, scene, clock):
    messages = []
    machine.on_status = messages.append
    node = scene.create_node((100, 100))
    target = scene.create_node((500, 100))

    tap(machine, 260, 115)
    tap(machine, 150, 120)
    tap(machine, 260, 115)
    tap(machine, 260, 200)
    drag(machine, (150, 170), (170, 170), (550, 170))
    drag(machine, (900, 900), (950, 950))

    assert messages == [
        "Writing...",
        "Writing title",
        "Handwriting saved",
        "Handwriting OFF",
        "Strokes cleared",
        "Nodes connected",
        "Drawing...",
        "Node created",
    ]
    assert scene.edges == (Edge(node.id, target.id),)


def test_on_changed_fires_per_processed_event(machine, scene):
    calls = []
    machine.on_changed = lambda: calls.append(1)

    machine.pointer_down(10, 10)
    machine.pointer_move(20, 20)
    machine.pointer_up(20, 20)

    assert len(calls) == 3


def test_selection_callback(machine, scene):
    selections = []
    machine.on_selection_changed = selections.append
    node = scene.create_node((100, 100))

    tap(machine, 150, 170)
    tap(machine, 150, 170)  # second tap hides the node and drops the selection
    machine.pointer_down(600, 600)
    machine.pointer_up(600, 600)

    assert selections[0] == node.id
    assert selections[-1] is None
