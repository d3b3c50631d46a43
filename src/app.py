"""
Flask JSON API for the tournament engine.
"""
import os
from functools import wraps

from flask import Flask, jsonify, request

from arena.allocation import matches_by_table, move_match_to_table, round_table_conflicts
from arena.config import DATA_DIR, load_settings, read_settings
from arena.errors import IllegalStateError, ValidationError
from arena.names import suggest_team_names
from arena.progression import (
    determine_phase,
    final_standings,
    group_standings,
    record_result,
    start_tournament,
)
from arena.ranking import rank
from arena.storage import TournamentNotFound, TournamentStore
from arena.teams import add_team, create_tournament, make_player, remove_team, update_team

app = Flask(__name__)

TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')

app.config['NAME_SUGGESTER'] = None

CREATE_FIELDS = (
    'format', 'max_tables', 'location_label', 'num_groups', 'advance_count_per_group',
    'tie_break_rules', 'use_knockout_advantage', 'knockout_logic',
)


def get_store() -> TournamentStore:
    return TournamentStore(TOURNAMENTS_DIR)


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(IllegalStateError)
def handle_illegal_state(e):
    return jsonify({'error': str(e)}), 409


@app.errorhandler(TournamentNotFound)
def handle_not_found(e):
    return jsonify({'error': f'Tournament {e.args[0]} not found'}), 404


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON object body')
    return data


def mutates_tournament(f):
    """Load the tournament, apply the view's transformation and save the result atomically."""
    @wraps(f)
    def wrapper(tournament_id, *args, **kwargs):
        store = get_store()
        with store.lock:
            tournament = store.load(tournament_id)
            updated = f(tournament, *args, **kwargs)
            store.save(updated)
        return jsonify({'success': True, 'tournament': updated.to_dict(),
                        'phase': determine_phase(updated).value})
    return wrapper


def _players_from(raw_players):
    if raw_players is None:
        return None
    if not isinstance(raw_players, list):
        raise ValidationError('players must be a list')
    players = []
    for raw in raw_players:
        if not isinstance(raw, dict):
            raise ValidationError('Each player must be an object with name and number')
        players.append(make_player(raw.get('name'), raw.get('number')))
    return players


def _standing_rows(teams):
    return [dict(team.to_dict(), position=i) for i, team in enumerate(teams, start=1)]


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    store = get_store()
    tournaments = []
    for tournament_id in store.list_ids():
        tournament = store.load(tournament_id)
        tournaments.append({
            'id': tournament.id,
            'name': tournament.name,
            'format': tournament.format.value,
            'teams': len(tournament.teams),
            'phase': determine_phase(tournament).value,
        })
    return jsonify({'tournaments': tournaments})


@app.route('/api/settings', methods=['GET'])
def api_settings():
    """Defaults applied to new tournaments, after the settings file is overlaid."""
    settings = load_settings(SETTINGS_FILE)
    settings.update(
        format=settings['format'].value,
        knockout_logic=settings['knockout_logic'].value,
        tie_break_rules=[rule.value for rule in settings['tie_break_rules']],
    )
    return jsonify({'settings': settings})


@app.route('/api/tournaments/create', methods=['POST'])
def api_create_tournament():
    """Create a tournament from the configured defaults plus request overrides."""
    data = _json_body()
    overrides = {key: data[key] for key in CREATE_FIELDS if key in data}
    tournament = create_tournament(data.get('name', ''), settings=read_settings(SETTINGS_FILE),
                                   slogan=data.get('slogan'), **overrides)
    get_store().save(tournament)
    app.logger.info(f"Created tournament {tournament.id} ({tournament.name})")
    return jsonify({'success': True, 'tournament': tournament.to_dict()}), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    tournament = get_store().load(tournament_id)
    return jsonify({'tournament': tournament.to_dict(), 'phase': determine_phase(tournament).value})


@app.route('/api/tournaments/<tournament_id>/delete', methods=['POST'])
def api_delete_tournament(tournament_id):
    get_store().delete(tournament_id)
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/teams/add', methods=['POST'])
@mutates_tournament
def api_add_team(tournament):
    data = _json_body()
    return add_team(tournament, data.get('name', ''), logo=data.get('logo'),
                    players=_players_from(data.get('players')) or (), group=data.get('group'))


@app.route('/api/tournaments/<tournament_id>/teams/edit', methods=['POST'])
@mutates_tournament
def api_edit_team(tournament):
    data = _json_body()
    return update_team(tournament, data.get('team_id', ''), name=data.get('name'),
                       logo=data.get('logo'), players=_players_from(data.get('players')))


@app.route('/api/tournaments/<tournament_id>/teams/remove', methods=['POST'])
@mutates_tournament
def api_remove_team(tournament):
    return remove_team(tournament, _json_body().get('team_id', ''))


@app.route('/api/tournaments/<tournament_id>/start', methods=['POST'])
@mutates_tournament
def api_start_tournament(tournament):
    return start_tournament(tournament)


@app.route('/api/tournaments/<tournament_id>/results', methods=['POST'])
@mutates_tournament
def api_record_result(tournament):
    data = _json_body()
    if 'home_score' not in data or 'away_score' not in data:
        raise ValidationError('Both scores must be filled')
    return record_result(tournament, data.get('match_id', ''), data['home_score'], data['away_score'])


@app.route('/api/tournaments/<tournament_id>/tables/move', methods=['POST'])
@mutates_tournament
def api_move_match(tournament):
    data = _json_body()
    return move_match_to_table(tournament, data.get('match_id', ''), data.get('table_number'))


@app.route('/api/tournaments/<tournament_id>/tables', methods=['GET'])
def api_tables(tournament_id):
    tournament = get_store().load(tournament_id)
    tables = matches_by_table(tournament.matches)
    return jsonify({
        'location_label': tournament.location_label,
        'tables': [
            {'table': table, 'matches': [m.to_dict() for m in table_matches]}
            for table, table_matches in tables.items()
        ],
        'conflicts': [{'round': round_number, 'table': table}
                      for round_number, table in round_table_conflicts(tournament.matches)],
    })


@app.route('/api/tournaments/<tournament_id>/standings', methods=['GET'])
def api_standings(tournament_id):
    """Overall standings, per-group standings and, once finished, the final ranking."""
    tournament = get_store().load(tournament_id)
    response = {
        'phase': determine_phase(tournament).value,
        'standings': _standing_rows(rank(tournament.teams, tournament.tie_break_rules, tournament.matches)),
        'groups': {group: _standing_rows(teams) for group, teams in group_standings(tournament).items()},
    }
    if tournament.is_finished:
        response['final'] = _standing_rows(final_standings(tournament))
    return jsonify(response)


@app.route('/api/team-names', methods=['GET'])
def api_team_names():
    count = request.args.get('count', 8, type=int)
    if count < 0:
        raise ValidationError(f'count cannot be negative, got {count}')
    return jsonify({'names': suggest_team_names(app.config['NAME_SUGGESTER'], count=count)})


if __name__ == '__main__':
    app.run(debug=True)
