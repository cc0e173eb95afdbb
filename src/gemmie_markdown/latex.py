# -*- coding: utf-8 -*-
"""
LaTeX → Unicode approximation for math spans.

Formulas are only displayed, never evaluated: commands are mapped to Unicode
symbols and scripts to super/subscript characters where such characters
exist.
"""

import re

_SYMBOLS = {
    # Greek
    'alpha': 'α', 'beta': 'β', 'gamma': 'γ', 'delta': 'δ', 'epsilon': 'ε',
    'varepsilon': 'ε', 'zeta': 'ζ', 'eta': 'η', 'theta': 'θ', 'vartheta': 'ϑ',
    'iota': 'ι', 'kappa': 'κ', 'lambda': 'λ', 'mu': 'μ', 'nu': 'ν', 'xi': 'ξ',
    'pi': 'π', 'rho': 'ρ', 'sigma': 'σ', 'tau': 'τ', 'upsilon': 'υ',
    'phi': 'φ', 'varphi': 'ϕ', 'chi': 'χ', 'psi': 'ψ', 'omega': 'ω',
    'Gamma': 'Γ', 'Delta': 'Δ', 'Theta': 'Θ', 'Lambda': 'Λ', 'Xi': 'Ξ',
    'Pi': 'Π', 'Sigma': 'Σ', 'Phi': 'Φ', 'Psi': 'Ψ', 'Omega': 'Ω',
    # Operators and relations
    'times': '×', 'cdot': '·', 'div': '÷', 'pm': '±', 'mp': '∓',
    'leq': '≤', 'le': '≤', 'geq': '≥', 'ge': '≥', 'neq': '≠', 'ne': '≠',
    'approx': '≈', 'equiv': '≡', 'sim': '∼', 'propto': '∝',
    'in': '∈', 'notin': '∉', 'subset': '⊂', 'subseteq': '⊆', 'supset': '⊃',
    'cup': '∪', 'cap': '∩', 'land': '∧', 'lor': '∨', 'neg': '¬',
    'forall': '∀', 'exists': '∃', 'partial': '∂', 'nabla': '∇', 'infty': '∞',
    'angle': '∠', 'perp': '⊥', 'parallel': '∥', 'circ': '∘',
    'dots': '…', 'ldots': '…', 'cdots': '⋯', 'vdots': '⋮',
    # Arrows
    'to': '→', 'rightarrow': '→', 'leftarrow': '←', 'Rightarrow': '⇒',
    'Leftarrow': '⇐', 'leftrightarrow': '↔', 'Leftrightarrow': '⇔',
    'mapsto': '↦', 'uparrow': '↑', 'downarrow': '↓',
    # Big operators
    'sum': '∑', 'prod': '∏', 'int': '∫', 'iint': '∬', 'oint': '∮',
    'bigcup': '⋃', 'bigcap': '⋂',
    # Misc
    'hbar': 'ℏ', 'ell': 'ℓ', 'aleph': 'ℵ', 'emptyset': '∅', 'varnothing': '∅',
    'star': '⋆', 'dagger': '†', 'prime': '′', 'langle': '⟨', 'rangle': '⟩',
    'lfloor': '⌊', 'rfloor': '⌋', 'lceil': '⌈', 'rceil': '⌉',
    'quad': '  ', 'qquad': '    ',
}

# Rendered upright, as their own names
_FUNCTIONS = frozenset({
    'sin', 'cos', 'tan', 'cot', 'sec', 'csc', 'arcsin', 'arccos', 'arctan',
    'sinh', 'cosh', 'tanh', 'log', 'ln', 'lg', 'exp', 'lim', 'min', 'max',
    'sup', 'inf', 'det', 'dim', 'gcd', 'deg', 'arg', 'ker', 'mod',
})

_SUPERSCRIPTS = dict(zip('0123456789+-=()niT', '⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻⁼⁽⁾ⁿⁱᵀ'))
_SUBSCRIPTS = dict(zip('0123456789+-=()aeijkmnoprstuvx', '₀₁₂₃₄₅₆₇₈₉₊₋₌₍₎ₐₑᵢⱼₖₘₙₒₚᵣₛₜᵤᵥₓ'))

# One level of nested braces
_GROUP = r'\{((?:[^{}]|\{[^{}]*\})*)\}'

_STYLE_RE = re.compile(r'\\(?:display|text|script|scriptscript)style\b')
_WRAPPER_RE = re.compile(r'\\(?:text|math[a-z]+|operatorname|boldsymbol|bm)' + _GROUP)
_DELIMITER_RE = re.compile(r'\\(?:left|right)(?![A-Za-z])')
_FRAC_RE = re.compile(r'\\[dt]?frac' + _GROUP + _GROUP)
_ROOT_RE = re.compile(r'\\sqrt(?:\[([^\]]+)\])?' + _GROUP)
_SUP_RE = re.compile(r'\^(?:' + _GROUP + r'|([A-Za-z0-9+\-]))')
_SUB_RE = re.compile(r'_(?:' + _GROUP + r'|([A-Za-z0-9]))')
_COMMAND_RE = re.compile(r'\\([A-Za-z]+)')
_SPACING_RE = re.compile(r'\\[,;:! ]')


def _script(text: str, table: dict, marker: str) -> str:
    if all(c in table for c in text):
        return ''.join(table[c] for c in text)
    # Mixed content has no Unicode form, keep it readable
    return f'{marker}({text})' if len(text) > 1 else f'{marker}{text}'


def _command(m) -> str:
    name = m.group(1)
    if name in _SYMBOLS:
        return _SYMBOLS[name]
    if name in _FUNCTIONS:
        return name
    return m.group(0)


def latex_to_unicode(latex: str) -> str:
    """Convert a LaTeX math expression to a Unicode approximation."""
    text = _STYLE_RE.sub('', latex.strip())
    text = _WRAPPER_RE.sub(r'\1', text)
    text = _DELIMITER_RE.sub('', text)

    def _frac(m):
        num, den = latex_to_unicode(m.group(1)), latex_to_unicode(m.group(2))
        if len(num) == 1 and len(den) == 1:
            return f'{num}⁄{den}'
        return f'({num})/({den})'

    def _root(m):
        body = latex_to_unicode(m.group(2))
        index = _script(m.group(1), _SUPERSCRIPTS, '^') if m.group(1) else ''
        return f'{index}√{body}' if len(body) <= 2 else f'{index}√({body})'

    text = _FRAC_RE.sub(_frac, text)
    text = _ROOT_RE.sub(_root, text)
    text = _COMMAND_RE.sub(_command, text)
    text = _SUP_RE.sub(
        lambda m: _script(latex_to_unicode(m.group(1)) if m.group(1) is not None else m.group(2), _SUPERSCRIPTS, '^'),
        text,
    )
    text = _SUB_RE.sub(
        lambda m: _script(latex_to_unicode(m.group(1)) if m.group(1) is not None else m.group(2), _SUBSCRIPTS, '_'),
        text,
    )
    text = _SPACING_RE.sub(' ', text)
    text = text.replace('{', '').replace('}', '')
    return re.sub(r'  +', ' ', text).strip()
