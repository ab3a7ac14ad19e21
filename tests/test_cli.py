import io

from grsbpl import LexError, RunError
from grsbpl_cli import main, render_error, run_program


def test_render_error_with_known_length():
    lines = ['1 2 +', '5 0 /', '3']
    text = render_error(lines, RunError('Division by zero', 2, 4, 1))
    assert text.split('\n') == [
        '',
        '[GRSBPL Runtime Execution Error]',
        '',
        '  1 | 1 2 +',
        '  2 | 5 0 /',
        '          ^',
        '          Division by zero',
        '',
        '  3 | 3',
    ]


def test_render_error_infers_unknown_length():
    lines = ['12345 6 pop pop pop', '']
    text = render_error(lines, RunError('Cannot pop empty stack', 1, 16, None))
    assert '  1 | 12345 6 pop pop pop' in text
    assert '                      ^^^\n' in text


def test_render_error_shows_two_following_lines():
    lines = ['a', 'b', 'c', 'd', 'e']
    text = render_error(lines, LexError('bad', 2, 0, 1))
    assert '  1 | a' in text
    assert '  3 | c' in text
    assert '  4 | d' in text
    assert '  5 | e' not in text


def test_run_program_reports_errors():
    err = io.StringIO()
    code = run_program('1 0 /', stdout=io.StringIO(), stdin=io.StringIO(), stderr=err)
    assert code == 1
    assert 'Division by zero' in err.getvalue()


def test_context_lines_follow_lexer_line_count():
    err = io.StringIO()
    source = '# page\x0cbreak   #\n1 0 /\n2'
    code = run_program(source, stdout=io.StringIO(), stdin=io.StringIO(), stderr=err)
    assert code == 1
    text = err.getvalue()
    assert '  2 | 1 0 /\n' in text
    assert '  1 | # page\x0cbreak   #\n' in text
    assert '  3 | 2' in text


def test_run_program_reports_lex_errors():
    err = io.StringIO()
    code = run_program("'\\z'", stdout=io.StringIO(), stdin=io.StringIO(), stderr=err)
    assert code == 1
    assert 'Invalid escape sequence: \\z' in err.getvalue()


def test_main_runs_file(tmp_path, capsys):
    program = tmp_path / 'hello.grsbpl'
    program.write_text('"hi" out 42')
    assert main([str(program)]) == 42
    assert capsys.readouterr().out == 'hi'


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.grsbpl')]) == 1
    assert 'File not found' in capsys.readouterr().err


def test_main_without_program(capsys):
    assert main([]) == 1
    assert 'usage' in capsys.readouterr().err


def test_main_stack_limit(tmp_path, capsys):
    program = tmp_path / 'rec.grsbpl'
    program.write_text('function f 0 f')
    assert main(['--stack-limit', '10', str(program)]) == 1
    assert 'limit of 10 stack frames' in capsys.readouterr().err


def test_main_self_test(capsys):
    assert main(['--test']) == 0
    assert 'GRSBPL self-check: ' in capsys.readouterr().out
