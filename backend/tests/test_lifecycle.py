from arquiz.services.game import Phase


def test_flicker_inside_window_is_ignored(make_session, sink):
    session = make_session(debounce_ms=300)
    session.marker.marker_found()
    session.marker.marker_lost()
    session.choreographer.advance(100)
    session.marker.marker_found()
    session.choreographer.advance(1000)
    assert session.machine.phase is Phase.ACTIVE
    assert sink.event_types() == ['game_started']
    assert [i.name for i in session.choreographer.pending(group='marker')] == []


def test_lost_after_window_pauses_game(make_session):
    session = make_session(debounce_ms=300)
    session.marker.marker_found()
    session.marker.marker_lost()
    assert session.machine.phase is Phase.ACTIVE
    session.choreographer.advance(300)
    assert session.machine.phase is Phase.MARKER_LOST
    assert session.marker.visible is False

    session.marker.marker_found()
    assert session.machine.phase is Phase.ACTIVE


def test_flicker_keeps_score_and_index(make_session, sink):
    session = make_session(debounce_ms=300)
    session.marker.marker_found()
    session.choreographer.advance(4500)
    session.machine.submit_answer('s3')
    session.choreographer.advance(2500)
    before = (session.machine.state.score, session.machine.state.current_question_index)

    session.marker.marker_found()
    session.marker.marker_lost()
    session.marker.marker_found()
    session.choreographer.advance(1000)

    assert (session.machine.state.score, session.machine.state.current_question_index) == before
    assert sink.event_types().count('game_started') == 1


def test_repeated_signals_are_ignored(make_session, ui):
    session = make_session(debounce_ms=0)
    session.marker.marker_lost()
    assert session.machine.phase is Phase.NOT_STARTED
    session.marker.marker_found()
    calls = len(ui.calls)
    session.marker.marker_found()
    assert len(ui.calls) == calls

    session.marker.marker_lost()
    session.marker.marker_lost()
    assert session.machine.phase is Phase.MARKER_LOST


def test_zero_debounce_forwards_immediately(make_session):
    session = make_session(debounce_ms=0)
    session.marker.marker_found()
    session.marker.marker_lost()
    assert session.machine.phase is Phase.MARKER_LOST
    assert session.choreographer.pending(group='marker') == []


def test_restart_leaves_marker_debounce_alone(make_session):
    session = make_session(debounce_ms=300)
    session.marker.marker_found()
    session.marker.marker_lost()
    session.machine.restart()
    assert [i.name for i in session.choreographer.pending(group='marker')] == ['marker_lost']
    session.choreographer.advance(300)
    assert session.machine.phase is Phase.MARKER_LOST
