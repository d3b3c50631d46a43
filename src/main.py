# Command line entry point for running a tournament from YAML documents

import argparse
import logging
import os
import random
import sys

from arena.config import DATA_DIR, get_default_settings, read_settings, save_settings
from arena.errors import TournamentError
from arena.progression import determine_phase, final_standings, group_standings, record_result, start_tournament
from arena.ranking import rank
from arena.storage import TournamentNotFound, TournamentStore
from arena.teams import add_team, create_tournament, remove_team


def _store(args):
    return TournamentStore(os.path.join(args.data_dir, 'tournaments'))


def _settings_file(args):
    return os.path.join(args.data_dir, 'settings.yaml')


def _team_name(tournament, slot):
    if not slot.is_team:
        return slot.to_value()
    team = tournament.team_by_id(slot.team_id)
    return team.name if team else slot.team_id


def print_standings(teams, title=None):
    if title:
        print(f"# {title}")
    print(f"{'Pos':>3}  {'Team':<24} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'GF':>4} {'GA':>4} {'GD':>4} {'Pts':>4}")
    for position, team in enumerate(teams, start=1):
        r = team.record
        print(f"{position:>3}  {team.name:<24} {r.played:>3} {r.won:>3} {r.drawn:>3} {r.lost:>3} "
              f"{r.goals_for:>4} {r.goals_against:>4} {r.goal_diff:>4} {r.points:>4}")


def cmd_init(args):
    path = _settings_file(args)
    if os.path.exists(path) and not args.force:
        print(f"{path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    save_settings(get_default_settings(), path)
    print(f"Wrote default settings to {path}")
    return 0


def cmd_create(args):
    overrides = {
        'format': args.format,
        'max_tables': args.max_tables,
        'num_groups': args.groups,
        'advance_count_per_group': args.advance,
        'tie_break_rules': args.rules,
        'use_knockout_advantage': True if args.advantage else None,
        'knockout_logic': args.logic,
    }
    tournament = create_tournament(args.name, settings=read_settings(_settings_file(args)), **overrides)
    _store(args).save(tournament)
    print(tournament.id)
    return 0


def cmd_list(args):
    store = _store(args)
    for tournament_id in store.list_ids():
        tournament = store.load(tournament_id)
        print(f"{tournament.id}  {tournament.name}  [{tournament.format.value}]  "
              f"{determine_phase(tournament).value}")
    return 0


def _mutate(args, transform):
    store = _store(args)
    with store.lock:
        tournament = store.load(args.tournament)
        updated = transform(tournament)
        store.save(updated)
    return updated


def cmd_add_team(args):
    updated = _mutate(args, lambda t: add_team(t, args.name, group=args.group))
    print(updated.teams[-1].id)
    return 0


def cmd_remove_team(args):
    _mutate(args, lambda t: remove_team(t, args.team))
    return 0


def cmd_start(args):
    rng = random.Random(args.seed) if args.seed is not None else None
    updated = _mutate(args, lambda t: start_tournament(t, rng=rng))
    print(f"{len(updated.matches)} matches scheduled")
    return 0


def cmd_record(args):
    updated = _mutate(args, lambda t: record_result(t, args.match, args.home_score, args.away_score))
    print(determine_phase(updated).value)
    return 0


def cmd_fixtures(args):
    tournament = _store(args).load(args.tournament)
    current_round = None
    for match in sorted(tournament.matches, key=lambda m: (m.round, m.table_number or 0)):
        if match.round != current_round:
            if current_round is not None:
                print()
            print(f"# Round {match.round}")
            current_round = match.round
        score = f"{match.home_score}-{match.away_score}" if match.is_finished else 'vs'
        print(f"  {match.id}  [{match.stage.label}] {tournament.location_label} {match.table_number}: "
              f"{_team_name(tournament, match.home)} {score} {_team_name(tournament, match.away)}")
    return 0


def cmd_standings(args):
    tournament = _store(args).load(args.tournament)
    if tournament.is_finished:
        print_standings(final_standings(tournament), 'Final ranking')
        return 0
    groups = group_standings(tournament)
    if groups:
        for group, teams in groups.items():
            print_standings(teams, f"Group {group}")
            print()
    print_standings(rank(tournament.teams, tournament.tie_break_rules, tournament.matches), 'Overall')
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description='Run a tournament from the command line.')
    parser.add_argument('--data-dir', default=DATA_DIR, help='Directory holding settings and tournaments')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('init', help='Write the default settings file')
    p.add_argument('--force', action='store_true')
    p.set_defaults(func=cmd_init)

    p = sub.add_parser('create', help='Create a tournament and print its id')
    p.add_argument('name')
    p.add_argument('--format', choices=['LEAGUE', 'GROUPS_KNOCKOUT', 'KNOCKOUT'])
    p.add_argument('--max-tables', type=int)
    p.add_argument('--groups', type=int)
    p.add_argument('--advance', type=int)
    p.add_argument('--rules', nargs='+')
    p.add_argument('--advantage', action='store_true', help='Level knockout games go to the better group team')
    p.add_argument('--logic', choices=['OLYMPIC', 'EFFICIENCY'])
    p.set_defaults(func=cmd_create)

    p = sub.add_parser('list', help='List tournaments')
    p.set_defaults(func=cmd_list)

    p = sub.add_parser('add-team', help='Register a team and print its id')
    p.add_argument('tournament')
    p.add_argument('name')
    p.add_argument('--group')
    p.set_defaults(func=cmd_add_team)

    p = sub.add_parser('remove-team', help='Remove a team before the start')
    p.add_argument('tournament')
    p.add_argument('team')
    p.set_defaults(func=cmd_remove_team)

    p = sub.add_parser('start', help='Generate the opening fixtures')
    p.add_argument('tournament')
    p.add_argument('--seed', type=int, help='Random seed for the group draw')
    p.set_defaults(func=cmd_start)

    p = sub.add_parser('record', help='Record a match result')
    p.add_argument('tournament')
    p.add_argument('match')
    p.add_argument('home_score')
    p.add_argument('away_score')
    p.set_defaults(func=cmd_record)

    p = sub.add_parser('fixtures', help='Print fixtures by round')
    p.add_argument('tournament')
    p.set_defaults(func=cmd_fixtures)

    p = sub.add_parser('standings', help='Print standings')
    p.add_argument('tournament')
    p.set_defaults(func=cmd_standings)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    try:
        return args.func(args)
    except TournamentNotFound as e:
        print(f"Error: tournament {e.args[0]} not found", file=sys.stderr)
    except TournamentError as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
