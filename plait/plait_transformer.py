"""
Transforms the raw parsimonious parse tree into the plain tagged expression tree.

Tagged trees are nested tuples whose first item names the node kind:

    ('literal', value)
    ('env', name_tree)                         variable lookup
    ('indirect', tree)                         parenthesized or $-selected subexpression
    ('dot', base, (selector, ...))
    ('funccall', callee, (arg, ...))
    ('methcall', name, (arg, ...))
    ('not', operand)
    ('expression', first, ((op, operand), ...))

They contain nothing but tuples and scalars, so they can be cached, compared,
or dumped to JSON and read back without a live environment.
"""
from parsimonious.nodes import NodeVisitor


class ExpressionTransformer(NodeVisitor):

    def transform(self, node):
        return self.visit(node)

    def generic_visit(self, node, visited_children):
        # anonymous groups and repetitions: hand the children up as a list
        return visited_children

    # --- boolean / ternary chains ---

    def visit_expression(self, node, visited_children):
        _, first, tails, _ = visited_children
        if not tails:
            # single-element chains collapse to the element itself
            return first
        return ('expression', first, tuple(tails))

    def visit_chain_tail(self, node, visited_children):
        _, op, _, operand = visited_children
        return (op, operand)

    def visit_bool_op(self, node, visited_children):
        return node.text

    def visit_negation(self, node, visited_children):
        _, _, operand = visited_children
        return ('not', operand)

    # --- operands ---

    def visit_alternative(self, node, visited_children):
        return visited_children[0]

    def visit_operand(self, node, visited_children):
        return visited_children[0]

    def visit_lterm(self, node, visited_children):
        return visited_children[0]

    def visit_rterm(self, node, visited_children):
        return visited_children[0]

    def visit_dotted(self, node, visited_children):
        base, selectors = visited_children
        return ('dot', base, tuple(selectors))

    def visit_selector(self, node, visited_children):
        return visited_children[-1]

    def visit_lookup(self, node, visited_children):
        # $name: the value of name is itself the name to look up
        return ('env', visited_children[-1])

    def visit_subscript(self, node, visited_children):
        # .$name: the value of name is the key, used as-is
        return ('indirect', visited_children[-1])

    def visit_group(self, node, visited_children):
        return ('indirect', visited_children[1])

    # --- calls ---

    def visit_funccall(self, node, visited_children):
        callee, _, _, args, _, _ = visited_children
        return ('funccall', callee, tuple(args))

    def visit_methcall(self, node, visited_children):
        _, _, _, args, _, _ = visited_children
        # method names are literal keys, never looked up in the environment
        return ('methcall', node.children[0].text, tuple(args))

    def visit_arguments(self, node, visited_children):
        for first, rest in visited_children:
            return [first, *rest]
        return []

    def visit_more_args(self, node, visited_children):
        return visited_children[1]

    # --- leaves ---

    def visit_identifier(self, node, visited_children):
        return ('env', ('literal', node.text))

    def visit_key(self, node, visited_children):
        return ('literal', node.text)

    def visit_string(self, node, visited_children):
        return visited_children[0]

    def visit_dq_string(self, node, visited_children):
        return ('literal', node.text[1:-1])

    visit_sq_string = visit_dq_string
    visit_bt_string = visit_dq_string

    def visit_number(self, node, visited_children):
        text = node.text
        if '.' in text:
            return ('literal', float(text))
        return ('literal', int(text))

    def visit_integer(self, node, visited_children):
        return ('literal', int(node.text))
