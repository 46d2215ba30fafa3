"""Formatter expression grammar.

```
pipeline   ::= ternary ("|" NAME (":" ternary)*)*
ternary    ::= or_expr ("?" ternary ":" ternary)?
or_expr    ::= and_expr ("||" and_expr)*
and_expr   ::= equality ("&&" equality)*
equality   ::= comparison (("=="|"!="|"==="|"!==") comparison)*
comparison ::= additive (("<"|">"|"<="|">=") additive)*
additive   ::= multiplicative (("+"|"-") multiplicative)*
multiplicative ::= unary (("*"|"/"|"%") unary)*
unary      ::= ("!"|"-"|"+") unary | postfix
postfix    ::= atom ("." NAME | "[" pipeline "]" | "(" arguments? ")")*
atom       ::= NUMBER | STRING | true | false | null | undefined
             | NAME | array | object | "(" pipeline ")"
```

The filter pipe binds loosest, so ``value | date:'YYYY' + 1`` passes
``'YYYY' + 1`` as the filter argument.
"""

from lark import Lark

EXPRESSION_GRAMMAR = r"""
?start: pipeline

?pipeline: ternary
    | pipeline "|" NAME filter_args          -> filter_call

filter_args: (":" ternary)*

?ternary: or_expr
    | or_expr "?" ternary ":" ternary        -> conditional

?or_expr: and_expr
    | or_expr "||" and_expr                  -> or_

?and_expr: equality
    | and_expr "&&" equality                 -> and_

?equality: comparison
    | equality "===" comparison              -> strict_eq
    | equality "!==" comparison              -> strict_ne
    | equality "==" comparison               -> eq
    | equality "!=" comparison               -> ne

?comparison: additive
    | comparison "<" additive                -> lt
    | comparison ">" additive                -> gt
    | comparison "<=" additive               -> le
    | comparison ">=" additive               -> ge

?additive: multiplicative
    | additive "+" multiplicative            -> add
    | additive "-" multiplicative            -> sub

?multiplicative: unary
    | multiplicative "*" unary               -> mul
    | multiplicative "/" unary               -> div
    | multiplicative "%" unary               -> mod

?unary: postfix
    | "!" unary                              -> not_
    | "-" unary                              -> neg
    | "+" unary                              -> pos

?postfix: atom
    | postfix "." NAME                       -> member
    | postfix "[" pipeline "]"               -> index
    | postfix "(" [arguments] ")"            -> call

arguments: pipeline ("," pipeline)*

?atom: NUMBER                                -> number
    | STRING                                 -> string
    | "true"                                 -> true
    | "false"                                -> false
    | "null"                                 -> null
    | "undefined"                            -> null
    | NAME                                   -> name
    | "[" [arguments] "]"                    -> array
    | "{" [pair ("," pair)*] "}"             -> object
    | "(" pipeline ")"

pair: (NAME | STRING) ":" ternary

NAME: /[A-Za-z_$][A-Za-z0-9_$]*/
STRING: /'(?:[^'\\]|\\.)*'/ | /"(?:[^"\\]|\\.)*"/
NUMBER: /\d+(\.\d*)?([eE][+-]?\d+)?/ | /\.\d+([eE][+-]?\d+)?/

%import common.WS
%ignore WS
"""

_parser = None


def get_parser() -> Lark:
    """Get the shared LALR parser (built on first use; Lark parsers are reentrant)."""
    global _parser
    if _parser is None:
        _parser = Lark(
            EXPRESSION_GRAMMAR,
            parser="lalr",
            maybe_placeholders=True,
            propagate_positions=False,
        )
    return _parser
