"""
Tests for configuration loading.
"""

import pytest
import yaml

from fastsep.config import DEFAULTS, Config, get_config, load_config, reset_config
from fastsep.core.ica import ICAOptions


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    monkeypatch.delenv('FASTSEP_CONFIG', raising=False)
    reset_config()
    yield
    reset_config()


def _write_yaml(path, data):
    with open(path, 'w') as f:
        yaml.safe_dump(data, f)
    return str(path)


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.get('ica.approach') == 'symmetric'
        assert config.get('ica.max_iterations') == 1000
        assert config.get('whitening.eigenvalue_floor') == 1e-12

    def test_missing_key_default(self):
        config = Config()
        assert config.get('ica.nope', 'fallback') == 'fallback'
        assert config.get('nope.deeper.still') is None

    def test_deep_merge(self):
        """Overrides replace leaves and keep sibling keys."""
        config = Config({'ica': {'epsilon': 1e-6}})
        assert config.get('ica.epsilon') == 1e-6
        assert config.get('ica.nonlinearity') == 'tanh'

    def test_defaults_not_mutated(self):
        config = Config({'ica': {'epsilon': 1e-6}})
        config.section('ica')['approach'] = 'deflation'
        assert DEFAULTS['ica']['epsilon'] == 1e-4
        assert config.get('ica.approach') == 'symmetric'


class TestLoadConfig:

    def test_yaml_file(self, tmp_path):
        path = _write_yaml(tmp_path / 'fastsep.yaml', {
            'ica': {'approach': 'deflation', 'random_seed': 7},
            'whitening': {'degenerate_tolerance': 1e-8},
        })
        config = load_config(path)

        assert config.get('ica.approach') == 'deflation'
        assert config.get('ica.random_seed') == 7
        assert config.get('whitening.degenerate_tolerance') == 1e-8

    def test_none_is_defaults(self):
        assert load_config(None).to_dict() == DEFAULTS

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / 'absent.yaml'))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text('- a\n- b\n')
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_environment_variable(self, tmp_path, monkeypatch):
        """get_config() reads $FASTSEP_CONFIG once and caches it."""
        path = _write_yaml(tmp_path / 'env.yaml', {'ica': {'max_iterations': 25}})
        monkeypatch.setenv('FASTSEP_CONFIG', path)
        reset_config()

        assert get_config().get('ica.max_iterations') == 25
        assert get_config() is get_config()


class TestOptionsFromConfig:

    def test_sections_merged(self, tmp_path):
        path = _write_yaml(tmp_path / 'fastsep.yaml', {
            'ica': {'nonlinearity': 'gaussian', 'epsilon': 1e-5},
            'whitening': {'eigenvalue_floor': 1e-9},
        })
        options = ICAOptions.from_config(load_config(path))

        assert options.nonlinearity == 'gaussian'
        assert options.epsilon == 1e-5
        assert options.eigenvalue_floor == 1e-9
        assert options.n_components is None

    def test_overrides_win(self):
        options = ICAOptions.from_config(Config(), {'approach': 'deflation', 'epsilon': None})
        assert options.approach == 'deflation'
        assert options.epsilon == 1e-4
